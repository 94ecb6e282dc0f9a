from mamba import description, context, it
from expects import *
from unittest.mock import Mock, patch

from pyVmomi import vim

from spec.spec_helper import FakeRetriever
from vcenter.errors import AuthError, NetworkError, NotFoundError, NotVCenterError, NoSessionError
from vcenter.enums import NetworkKind
from vcenter.finder import Finder
from vcenter.inventory import InventoryItem
from vcenter.vcenter import VCenter


def service_instance(api_type='VirtualCenter'):
    si = Mock()
    si.content.about.apiType = api_type
    si.content.about.fullName = 'VMware vCenter Server 7.0.3'
    return si


with description('VCenter'):
    with before.each:
        self.vc = VCenter('https://vcenter.local/sdk', 'user', 'pass', insecure_skip_verify=True)

    with it('derives host and port from the url'):
        vc = VCenter('https://vcenter.local:8443/sdk', 'user', 'pass')
        expect(vc.hostname).to(equal('vcenter.local'))
        expect(vc.port).to(equal(8443))
        expect(vc.host_tag).to(equal('vcenter.local:8443'))

    with context('open()'):

        with it('creates a new session on first use'):
            with patch('vcenter.vcenter.SmartConnect', return_value=service_instance()) as connect:
                expect(self.vc.open(10)).to(be_true)
            expect(connect.call_args.kwargs['host']).to(equal('vcenter.local'))
            expect(self.vc.connected).to(be_true)

        with it('relogs into an existing session'):
            si = service_instance()
            with patch('vcenter.vcenter.SmartConnect', return_value=si) as connect:
                self.vc.open(10)
                expect(self.vc.open(10)).to(be_false)
            expect(connect.call_count).to(equal(1))
            si.content.sessionManager.Login.assert_called_once_with(userName='user', password='pass')

        with it('reconnects when the relogin fails'):
            si = service_instance()
            si.content.sessionManager.Login.side_effect = vim.fault.InvalidLogin()
            with patch('vcenter.vcenter.SmartConnect', return_value=si) as connect, \
                    patch('vcenter.vcenter.Disconnect'):
                self.vc.open(10)
                expect(self.vc.open(10)).to(be_true)
            expect(connect.call_count).to(equal(2))

        with it('refuses an endpoint that is not a vCenter'):
            with patch('vcenter.vcenter.SmartConnect', return_value=service_instance('HostAgent')), \
                    patch('vcenter.vcenter.Disconnect'):
                expect(lambda: self.vc.open(10)).to(raise_error(NotVCenterError))
            expect(self.vc.connected).to(be_false)

        with it('maps rejected credentials to AuthError'):
            with patch('vcenter.vcenter.SmartConnect', side_effect=vim.fault.InvalidLogin()):
                expect(lambda: self.vc.open(10)).to(raise_error(AuthError))

        with it('maps transport failures to NetworkError'):
            with patch('vcenter.vcenter.SmartConnect', side_effect=ConnectionRefusedError()):
                expect(lambda: self.vc.open(10)).to(raise_error(NetworkError))

    with context('is_active()'):

        with it('is false without a session'):
            expect(self.vc.is_active()).to(be_false)

        with it('is false when the server time cannot be read'):
            si = service_instance()
            si.CurrentTime.side_effect = vim.fault.NotAuthenticated()
            with patch('vcenter.vcenter.SmartConnect', return_value=si):
                self.vc.open(10)
            expect(self.vc.is_active()).to(be_false)

        with it('is true when the server answers'):
            with patch('vcenter.vcenter.SmartConnect', return_value=service_instance()):
                self.vc.open(10)
            expect(self.vc.is_active()).to(be_true)

    with context('close()'):

        with it('forgets the session even when logout fails'):
            with patch('vcenter.vcenter.SmartConnect', return_value=service_instance()):
                self.vc.open(10)
            with patch('vcenter.vcenter.Disconnect', side_effect=ConnectionResetError()):
                self.vc.close()
            expect(self.vc.connected).to(be_false)

    with context('shutdown()'):

        with it('logs out and releases the liveness probe worker'):
            with patch('vcenter.vcenter.SmartConnect', return_value=service_instance()):
                self.vc.open(10)
            with patch('vcenter.vcenter.Disconnect') as disconnect:
                self.vc.shutdown()

            expect(disconnect.call_count).to(equal(1))
            expect(self.vc.connected).to(be_false)
            expect(lambda: self.vc._probe_pool.submit(int)).to(raise_error(RuntimeError))

    with it('requires a session to build api helpers'):
        expect(lambda: self.vc.finder()).to(raise_error(NoSessionError))


with description('Finder'):
    with before.each:
        self.root = vim.Folder('group-d1')
        self.dc = vim.Datacenter('datacenter-1')
        self.host_folder = vim.Folder('group-h4')
        self.cluster = vim.ClusterComputeResource('domain-c7')
        self.host = vim.HostSystem('host-10')
        self.net_folder = vim.Folder('group-n6')
        self.dvs = vim.dvs.VmwareDistributedVirtualSwitch('dvs-21')
        self.dvpg = vim.dvs.DistributedVirtualPortgroup('dvportgroup-22')
        self.retriever = FakeRetriever(props={
            'datacenter-1': {'name': 'DC1', 'parent': self.root},
            'group-h4': {'name': 'host', 'parent': self.dc},
            'domain-c7': {'name': 'Cluster1', 'parent': self.host_folder},
            'host-10': {'name': 'esx01', 'parent': self.cluster},
            'group-n6': {'name': 'network', 'parent': self.dc},
            'dvs-21': {'name': 'dvSwitch', 'parent': self.net_folder},
            'dvportgroup-22': {'name': 'dvPG', 'parent': self.net_folder},
        })
        self.view = Mock()
        self.content = Mock(rootFolder=self.root)
        self.content.viewManager.CreateContainerView = Mock(return_value=self.view)
        self.finder = Finder(self.content, self.retriever)
        self.dc_item = InventoryItem(self.dc, 'DC1', '/DC1')

    with it('computes inventory paths of hosts'):
        self.view.view = [self.host_folder, self.cluster, self.host]

        hosts = self.finder.host_list(self.dc_item)

        expect([(h.name, h.inventory_path) for h in hosts]).to(equal([('esx01', '/DC1/host/Cluster1/esx01')]))
        self.view.Destroy.assert_called_once_with()

    with it('lists datacenters from the root folder'):
        self.view.view = [self.dc, self.host_folder]

        dcs = self.finder.datacenter_list()

        expect([(d.name, d.inventory_path) for d in dcs]).to(equal([('DC1', '/DC1')]))

    with it('tags networks with their kind'):
        self.view.view = [self.net_folder, self.dvs, self.dvpg]

        kinds = [n.kind for n in self.finder.network_list(self.dc_item)]

        expect(kinds).to(equal([NetworkKind.DVS, NetworkKind.DVPG]))

    with it('raises NotFoundError when nothing matches'):
        self.view.view = [self.host_folder]

        expect(lambda: self.finder.vm_list(self.dc_item)).to(raise_error(NotFoundError))
        self.view.Destroy.assert_called_once_with()
