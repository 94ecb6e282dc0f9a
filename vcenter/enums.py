import enum


class EnumBase(enum.Enum):
    def __str__(self):
        return self.value


class StrEnumBase(EnumBase):
    pass


class NetworkKind(StrEnumBase):

    NETWORK = 'network'
    OPAQUE_NETWORK = 'opaque_network'
    DVS = 'distributed_virtual_switch'
    DVPG = 'distributed_virtual_portgroup'

    @classmethod
    def from_type_name(cls, type_name: str) -> 'NetworkKind':
        """
        Maps a managed object type name to the network kind
        :param type_name: e.g. 'VmwareDistributedVirtualSwitch'
        :return: NetworkKind
        """
        if type_name in ('DistributedVirtualSwitch', 'VmwareDistributedVirtualSwitch'):
            return cls.DVS
        if type_name == 'DistributedVirtualPortgroup':
            return cls.DVPG
        if type_name == 'OpaqueNetwork':
            return cls.OPAQUE_NETWORK
        return cls.NETWORK


class EntityClass(StrEnumBase):
    DATACENTERS = 'datacenters'
    CLUSTERS_AND_HOSTS = 'clusters_and_hosts'
    NETWORKS = 'networks'
    DATASTORES = 'datastores'
    VMS = 'vms'


class EntityStatus(StrEnumBase):
    GREEN = 'green'
    GRAY = 'gray'
    YELLOW = 'yellow'
    RED = 'red'

    @classmethod
    def code_of(cls, status) -> int:
        try:
            return _ENTITY_STATUS_CODES[cls(str(status))]
        except ValueError:
            return 1


_ENTITY_STATUS_CODES = {
    EntityStatus.GREEN: 0,
    EntityStatus.GRAY: 1,
    EntityStatus.YELLOW: 2,
    EntityStatus.RED: 3,
}


class RespondingCode(enum.IntEnum):
    RESPONDING = 0
    NOT_CONNECTED = 1
    NOT_RESPONDING = 2
