from mamba import description, context, it
from expects import *
from unittest.mock import Mock

from pyVmomi import vim

from vcenter.deadline import Deadline
from vcenter.errors import Cancelled
from vcenter.query import chunk_references, PropertyRetriever


with description('chunk_references()'):

    with it('splits a list into chunks of the given size keeping the order'):
        expect(chunk_references(['a', 'b', 'c', 'd', 'e'], 2)).to(equal([['a', 'b'], ['c', 'd'], ['e']]))

    with it('returns no chunk for an empty list'):
        expect(chunk_references([], 3)).to(equal([]))

    with it('returns a single chunk when the list is shorter than the size'):
        expect(chunk_references(['a', 'b'], 100)).to(equal([['a', 'b']]))

    with it('produces ceil(n / size) chunks whose concatenation is the input'):
        refs = list(range(23))
        chunks = chunk_references(refs, 5)
        expect(chunks).to(have_length(5))
        expect([r for chunk in chunks for r in chunk]).to(equal(refs))
        expect(max(len(chunk) for chunk in chunks)).to(equal(5))

    with it('rejects a non positive chunk size'):
        expect(lambda: chunk_references(['a'], 0)).to(raise_error(ValueError))
        expect(lambda: chunk_references(['a'], -1)).to(raise_error(ValueError))


with description('PropertyRetriever'):
    with before.each:
        def prop(name, val):
            p = Mock(val=val)
            p.name = name
            return p

        self.page1 = Mock(
            objects=[Mock(obj=vim.HostSystem('host-1'), propSet=[prop('name', 'esx01')], missingSet=[])],
            token='next'
        )
        self.page2 = Mock(
            objects=[Mock(obj=vim.HostSystem('host-2'), propSet=[prop('name', 'esx02')], missingSet=[])],
            token=None
        )
        self.pc = Mock()
        self.pc.RetrievePropertiesEx = Mock(return_value=self.page1)
        self.pc.ContinueRetrievePropertiesEx = Mock(return_value=self.page2)
        self.retriever = PropertyRetriever(self.pc, page_size=1)

    with it('follows continuation tokens and maps properties by moid'):
        result = self.retriever.retrieve([vim.HostSystem('host-1'), vim.HostSystem('host-2')], ['name'])

        expect(result).to(equal({'host-1': {'name': 'esx01'}, 'host-2': {'name': 'esx02'}}))
        self.pc.ContinueRetrievePropertiesEx.assert_called_once_with('next')

    with it('does not call vCenter for an empty reference list'):
        expect(self.retriever.retrieve([], ['name'])).to(equal({}))
        self.pc.RetrievePropertiesEx.assert_not_called()

    with it('checks the deadline before querying'):
        deadline = Deadline(60)
        deadline.cancel()
        expect(lambda: self.retriever.retrieve([vim.HostSystem('host-1')], ['name'], deadline=deadline)).to(
            raise_error(Cancelled)
        )
