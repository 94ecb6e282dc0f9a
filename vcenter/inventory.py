from vcenter.enums import NetworkKind


class InventoryItem:
    """
    Cached view of one managed entity found in the vCenter inventory.
    """

    def __init__(self, ref, name, inventory_path, moid=None, type_name=None):
        self.ref = ref
        self.name = name
        self.inventory_path = inventory_path
        self.moid = moid if moid is not None else ref._moId
        self.type_name = type_name if type_name is not None else ref._wsdlName

    def same_reference(self, ref) -> bool:
        if ref is None:
            return False
        return self.moid == ref._moId and self.type_name == ref._wsdlName

    def __repr__(self):
        return f'<{self.__class__.__name__} {self.type_name}:{self.moid} {self.inventory_path}>'


class NetworkItem(InventoryItem):

    def __init__(self, ref, name, inventory_path, kind: NetworkKind = None, moid=None, type_name=None):
        super().__init__(ref, name, inventory_path, moid=moid, type_name=type_name)
        self.kind = kind if kind is not None else NetworkKind.from_type_name(self.type_name)
