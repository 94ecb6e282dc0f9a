import logging

from pyVmomi import vim, vmodl

from vcenter.errors import NotFoundError, TransientQueryError
from vcenter.inventory import InventoryItem, NetworkItem


class Finder:
    """
    Lists inventory entities of one kind below a container and computes their
    inventory paths (e.g. /DC1/host/Cluster1/esx01).
    """

    def __init__(self, content, retriever):
        self.content = content
        self.retriever = retriever
        self.__logger = logging.getLogger(__name__)

    def datacenter_list(self, deadline=None):
        return self.__find(self.content.rootFolder, '', (vim.Datacenter,), 'datacenter', deadline)

    def cluster_list(self, dc: InventoryItem, deadline=None):
        return self.__find(dc.ref, dc.inventory_path, (vim.ClusterComputeResource,), 'cluster', deadline)

    def host_list(self, dc: InventoryItem, deadline=None):
        return self.__find(dc.ref, dc.inventory_path, (vim.HostSystem,), 'host', deadline)

    def network_list(self, dc: InventoryItem, deadline=None):
        return self.__find(
            dc.ref,
            dc.inventory_path,
            (vim.Network, vim.DistributedVirtualSwitch),
            'network',
            deadline,
            item_class=NetworkItem
        )

    def datastore_list(self, dc: InventoryItem, deadline=None):
        return self.__find(dc.ref, dc.inventory_path, (vim.Datastore,), 'datastore', deadline)

    def vm_list(self, dc: InventoryItem, deadline=None):
        return self.__find(dc.ref, dc.inventory_path, (vim.VirtualMachine,), 'virtual machine', deadline)

    def __find(self, container, root_path, wanted, what, deadline, item_class=InventoryItem):
        if deadline is not None:
            deadline.check()
        view = None
        try:
            view = self.content.viewManager.CreateContainerView(
                container=container,
                type=[vim.ManagedEntity],
                recursive=True
            )
            refs = list(view.view)
            props = self.retriever.retrieve(refs, ['name', 'parent'], deadline=deadline)
        except vmodl.fault.ManagedObjectNotFound as ex:
            raise TransientQueryError(f'{what} list changed while being read: {ex.msg}') from ex
        finally:
            if view is not None:
                try:
                    view.Destroy()
                except vmodl.MethodFault:
                    self.__logger.debug('container view already gone', exc_info=True)

        items = []
        for ref in refs:
            if not isinstance(ref, wanted) or ref._moId not in props:
                continue
            name = props[ref._moId].get('name', '')
            items.append(item_class(
                ref,
                name,
                self.__inventory_path(ref, props, container._moId, root_path)
            ))
        if not items:
            raise NotFoundError(f'no {what} found under {root_path or "/"}')
        self.__logger.debug(f'found {len(items)} {what} item(s) under {root_path or "/"}')
        return items

    @staticmethod
    def __inventory_path(ref, props, container_moid, root_path):
        names = []
        current = ref
        while current is not None and current._moId != container_moid:
            entry = props.get(current._moId)
            if entry is None:
                break
            names.append(entry.get('name', ''))
            current = entry.get('parent')
        return root_path + '/' + '/'.join(reversed(names))
