import logging
import xml.etree.ElementTree as ElementTree

from vcenter.errors import EsxcliError, ParseError

XSI = 'http://www.w3.org/2001/XMLSchema-instance'
XSI_TYPE = f'{{{XSI}}}type'
ESXCLI_VERSION = 'urn:vim25/5.0'


def _local_name(tag):
    return tag.rsplit('}', 1)[-1]


def _record(elem):
    values = {}
    for field in elem:
        if len(field):
            values[_local_name(field.tag)] = [(item.text or '').strip() for item in field]
        else:
            values[_local_name(field.tag)] = [(field.text or '').strip()]
    return values


def _collect_records(elem, records):
    type_name = elem.get(XSI_TYPE, '')
    if type_name.startswith('ArrayOf') or not type_name:
        for child in elem:
            _collect_records(child, records)
    elif len(elem):
        records.append(_record(elem))


def parse_esxcli_response(xml_text):
    """
    Converts the SOAP payload of an esxcli call into records
    :param xml_text: ExecuteSoap response
    :return: list of dict field -> list of values
    """
    if not xml_text:
        return []
    try:
        root = ElementTree.fromstring(f'<esxcli xmlns:xsi="{XSI}">{xml_text}</esxcli>')
    except ElementTree.ParseError as ex:
        raise ParseError(f'invalid esxcli response: {ex}') from ex
    records = []
    _collect_records(root, records)
    return records


class EsxcliExecutor:
    """
    Runs esxcli commands on a host through its managed method executer.
    """

    def __init__(self, host_ref):
        self.__logger = logging.getLogger(__name__)
        self.host_ref = host_ref
        self._executer = None

    def run(self, command):
        """
        :param command: esxcli words, e.g. ['network', 'nic', 'list']
        :return: list of dict field -> list of values
        """
        if self._executer is None:
            self._executer = self.host_ref.RetrieveManagedMethodExecuter()
        namespace = command[:-1]
        result = self._executer.ExecuteSoap(
            moid='ha-cli-handler-' + '-'.join(namespace),
            version=ESXCLI_VERSION,
            method='vim.EsxCLI.' + '.'.join(command),
            argument=[]
        )
        if result is None:
            return []
        if result.fault is not None:
            raise EsxcliError(
                f"esxcli {' '.join(command)} failed: {result.fault.faultMsg or result.fault.faultDetail}"
            )
        records = parse_esxcli_response(result.response)
        self.__logger.debug(f"esxcli {' '.join(command)} returned {len(records)} record(s)")
        return records
