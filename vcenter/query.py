import logging

from pyVmomi import vim


def chunk_references(refs, chunk_size):
    """
    Splits a reference list into contiguous chunks of at most chunk_size items
    :param refs: list of references (or any sequence)
    :param chunk_size: maximum chunk length, must be positive
    :return: list of lists, empty for an empty input
    """
    if chunk_size <= 0:
        raise ValueError(f'chunk size must be positive, got {chunk_size}')
    refs = list(refs)
    return [refs[i:i + chunk_size] for i in range(0, len(refs), chunk_size)]


class PropertyRetriever:
    """
    Fetches properties of many managed objects with one PropertyCollector round trip
    (plus continuation pages).
    """

    def __init__(self, property_collector, page_size=1000):
        self.__logger = logging.getLogger(__name__)
        self.property_collector = property_collector
        self.page_size = page_size

    @staticmethod
    def _filter_spec(refs, path_set):
        obj_specs = []
        prop_specs = {}
        for ref in refs:
            obj_specs.append(vim.PropertyCollector.ObjectSpec(obj=ref, skip=False))
            if type(ref) not in prop_specs:
                prop_specs[type(ref)] = vim.PropertyCollector.PropertySpec(
                    type=type(ref),
                    pathSet=list(path_set),
                    all=False
                )
        return vim.PropertyCollector.FilterSpec(
            objectSet=obj_specs,
            propSet=list(prop_specs.values())
        )

    def retrieve(self, refs, path_set, deadline=None):
        """
        :param refs: managed object references
        :param path_set: property paths to fetch for each of them
        :param deadline: optional Deadline checked before each page
        :return: dict moid -> {property path: value}
        """
        result = {}
        if not refs:
            return result

        if deadline is not None:
            deadline.check()
        options = vim.PropertyCollector.RetrieveOptions(maxObjects=self.page_size)
        response = self.property_collector.RetrievePropertiesEx(
            specSet=[self._filter_spec(refs, path_set)],
            options=options
        )
        while response is not None:
            for obj_content in response.objects or []:
                result[obj_content.obj._moId] = {p.name: p.val for p in obj_content.propSet}
                if obj_content.missingSet:
                    self.__logger.debug(
                        f'{obj_content.obj._moId}: missing properties '
                        f'{[m.path for m in obj_content.missingSet]}'
                    )
            if not response.token:
                break
            if deadline is not None:
                deadline.check()
            response = self.property_collector.ContinueRetrievePropertiesEx(response.token)

        return result
