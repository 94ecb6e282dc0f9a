import concurrent.futures
import logging
import ssl
import urllib.parse

from pyVim.connect import SmartConnect, Disconnect
from pyVmomi import vim, vmodl

from vcenter.errors import AuthError, NetworkError, NoSessionError, NotVCenterError
from vcenter.esxcli import EsxcliExecutor
from vcenter.finder import Finder
from vcenter.query import PropertyRetriever

ACTIVE_CHECK_TIMEOUT = 5
LOGOUT_TIMEOUT = 3


class VCenter:
    """
    Session gateway: owns one authenticated vCenter service instance.
    """

    def __init__(self, url, username, password, tls_ca=None, insecure_skip_verify=False, page_size=1000):
        self.__logger = logging.getLogger(__name__)
        self.url = url if '://' in url else f'https://{url}/sdk'
        parsed = urllib.parse.urlparse(self.url)
        self.hostname = parsed.hostname
        self.port = parsed.port or 443
        self.host_tag = parsed.netloc.rsplit('@', 1)[-1]
        self.username = username or urllib.parse.unquote(parsed.username or '')
        self.password = password or urllib.parse.unquote(parsed.password or '')
        self.tls_ca = tls_ca
        self.insecure_skip_verify = insecure_skip_verify
        self.page_size = page_size
        self.si = None
        self.content = None
        self._probe_pool = concurrent.futures.ThreadPoolExecutor(max_workers=1)

    @property
    def connected(self) -> bool:
        return self.si is not None

    @property
    def about(self):
        self.__check_connection()
        return self.content.about

    def __check_connection(self):
        if self.si is None:
            raise NoSessionError()

    def __ssl_context(self):
        if self.insecure_skip_verify:
            return ssl._create_unverified_context()
        return ssl.create_default_context(cafile=self.tls_ca)

    def __connect(self, timeout):
        try:
            si = SmartConnect(
                host=self.hostname,
                user=self.username,
                pwd=self.password,
                port=self.port,
                httpConnectionTimeout=timeout,
                connectionPoolTimeout=timeout,
                sslContext=self.__ssl_context()
            )
        except (vim.fault.InvalidLogin, vim.fault.NotAuthenticated) as ex:
            raise AuthError(f'could not log into {self.host_tag}: {ex.msg}') from ex
        except OSError as ex:
            raise NetworkError(f'could not reach {self.host_tag}: {ex}') from ex

        if not si:
            raise NetworkError(f'could not connect to {self.host_tag}')

        api_type = si.content.about.apiType
        if api_type != 'VirtualCenter':
            self.__logger.error(f'{self.host_tag} api type is {api_type}')
            try:
                Disconnect(si)
            except (vmodl.MethodFault, OSError):
                self.__logger.debug('logout failed', exc_info=True)
            raise NotVCenterError(f'{self.host_tag} is not a vCenter ({api_type})')
        return si

    def __relogin(self):
        self.content.sessionManager.Login(userName=self.username, password=self.password)

    def open(self, timeout) -> bool:
        """
        Renews the current session with a lightweight login, or opens a new one.
        :param timeout: login timeout in seconds
        :return: True when a new session (and service instance) was created
        """
        if self.si is not None:
            try:
                self.__relogin()
                self.__logger.debug(f'relogged into {self.host_tag}')
                return False
            except Exception:
                self.__logger.info(f'relogin into {self.host_tag} failed, reconnecting', exc_info=True)
                self.close()

        self.si = self.__connect(timeout)
        self.content = self.si.content
        self.__logger.info(
            f'connected to {self.host_tag}: {self.content.about.fullName}'
        )
        return True

    def is_active(self, deadline=None) -> bool:
        if self.si is None:
            return False
        timeout = ACTIVE_CHECK_TIMEOUT if deadline is None else deadline.bounded(ACTIVE_CHECK_TIMEOUT)
        future = self._probe_pool.submit(self.si.CurrentTime)
        try:
            future.result(timeout=timeout)
            return True
        except concurrent.futures.TimeoutError:
            self.__logger.warning(f'{self.host_tag} did not answer within {timeout}s')
            return False
        except Exception:
            self.__logger.debug(f'{self.host_tag} session is not active', exc_info=True)
            return False

    def close(self):
        if self.si is None:
            return
        future = self._probe_pool.submit(Disconnect, self.si)
        try:
            future.result(timeout=LOGOUT_TIMEOUT)
        except Exception:
            self.__logger.debug(f'logout from {self.host_tag} failed', exc_info=True)
        finally:
            self.si = None
            self.content = None

    def shutdown(self):
        """
        Closes the session and releases the probe worker, the instance is not reusable afterwards
        """
        self.close()
        self._probe_pool.shutdown(wait=False)

    def retriever(self) -> PropertyRetriever:
        self.__check_connection()
        return PropertyRetriever(self.content.propertyCollector, page_size=self.page_size)

    def finder(self) -> Finder:
        self.__check_connection()
        return Finder(self.content, self.retriever())

    def esxcli(self, host) -> EsxcliExecutor:
        self.__check_connection()
        return EsxcliExecutor(host.ref)
