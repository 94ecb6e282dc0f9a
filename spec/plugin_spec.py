from mamba import description, context, it
from expects import *

from spec.spec_helper import (FakeClock, FakeEsxcli, FakeFinder, FakeRetriever, FakeVCenter,
                              datacenter, hba_record, host, host_summary)
from vcenter.deadline import Deadline
from vcenter.errors import AuthError, Cancelled, EsxcliError, NetworkError
from vcstat.accumulator import Accumulator
from vcstat.plugin import VcStat
from vcstat.settings import Settings

HOST_MEASUREMENTS = ['vcstat_host', 'vcstat_host_hba', 'vcstat_host_esxcli']


def config(**overrides):
    result = dict(Settings.DEFAULTS['vcstat'])
    result.update({
        'vcenter': 'https://vcenter.local/sdk',
        'cluster_instances': False,
        'host_instances': True,
        'host_hba_instances': True,
        'net_dvs_instances': False,
    })
    result.update(overrides)
    return result


with description('VcStat'):
    with before.each:
        self.clock = FakeClock()
        self.dc1 = datacenter('DC1', 'datacenter-1')
        self.dc2 = datacenter('DC2', 'datacenter-2')
        self.finder = FakeFinder(
            dcs=[self.dc1, self.dc2],
            hosts={'DC1': [host(self.dc1, 'esx01', 'host-1'), host(self.dc1, 'esx02', 'host-2')]},
        )
        self.retriever = FakeRetriever(props={
            'host-1': {'summary': host_summary()},
            'host-2': {'summary': host_summary()},
        })
        self.esxcli = FakeEsxcli({
            'host-1': [hba_record('vmhba0'), hba_record('vmhba1', state='link-down')],
            'host-2': EsxcliError('vmkernel did not answer'),
        })
        self.vcenter = FakeVCenter(self.finder, self.retriever, self.esxcli)
        self.plugin = VcStat(config(), vcenter_factory=lambda *args, **kwargs: self.vcenter, clock=self.clock)
        self.plugin.set_poll_interval(60)
        self.plugin.set_version('1.2.0')
        self.plugin.start_self_metrics()
        self.acc = Accumulator(clock=self.clock)

    with context('gather() with one failing host'):
        with before.each:
            self.result = self.plugin.gather(self.acc)

        with it('succeeds and opens one session'):
            expect(self.result).to(be_true)
            expect(self.vcenter.opens).to(equal(1))
            expect(self.plugin.sessions_created).to(equal(1))

        with it('reports hba records of the healthy host only'):
            hbas = self.acc.measurements('vcstat_host_hba')

            expect(hbas).to(have_length(2))
            expect({m.tags['esxhostname'] for m in hbas}).to(equal({'esx01'}))
            expect([m.fields['link_state_code'] for m in hbas]).to(equal([0, 3]))

        with it('accumulates one error for the failing host'):
            expect(self.acc.errors).to(have_length(1))
            expect(str(self.acc.errors[0])).to(contain('esx02'))

        with it('counts the failing host as not responding'):
            expect(self.plugin.vcc.cache.get_number_not_responding()).to(equal(1))
            codes = {m.tags['esxhostname']: m.fields['responding_code']
                     for m in self.acc.measurements('vcstat_host_esxcli')}
            expect(codes).to(equal({'esx01': 0, 'esx02': 2}))

        with it('gets no host level records from the empty datacenter'):
            for name in HOST_MEASUREMENTS:
                expect([m for m in self.acc.measurements(name) if m.tags['dcname'] == 'DC2']).to(be_empty)
            expect(self.acc.measurements('vcstat_datacenter')).to(have_length(2))

        with it('reports self metrics'):
            internal = self.acc.measurements('internal_vcstat')

            expect(internal).to(have_length(1))
            expect(internal[0].tags).to(equal({'alias': '', 'vcenter': 'vcenter.local', 'vcstat_version': '1.2.0'}))
            expect(internal[0].fields['notresponding_esxcli_hosts']).to(equal(1))
            expect(internal[0].fields['sessions_created']).to(equal(1))

        with it('skips the failing host in the next cycle while it cools down'):
            self.clock.advance(60)
            acc = Accumulator(clock=self.clock)

            expect(self.plugin.gather(acc)).to(be_true)
            expect(acc.errors).to(be_empty)
            expect([run[0] for run in self.esxcli.runs]).to(equal(['host-1', 'host-2', 'host-1']))

        with it('reports a re-authentication when the session was lost'):
            self.vcenter.active = False
            acc = Accumulator(clock=self.clock)

            self.plugin.gather(acc)

            expect(self.plugin.sessions_created).to(equal(2))
            expect(str(acc.errors[0])).to(contain('re-authenticating'))

    with context('gather() with a fatal error'):

        with it('drops every metric of the cycle'):
            self.esxcli.answers['host-2'] = NetworkError('connection reset by peer')

            expect(self.plugin.gather(self.acc)).to(be_false)
            expect(self.acc.metrics).to(be_empty)
            expect(self.acc.errors).to(have_length(1))

        with it('drops the records of a host that answered too slowly'):
            self.esxcli.clock = self.clock
            self.esxcli.duration = 61

            expect(self.plugin.gather(self.acc)).to(be_false)
            expect(self.acc.measurements('vcstat_host_hba')).to(be_empty)
            expect(self.acc.errors).to(have_length(1))
            expect(str(self.acc.errors[0])).to(contain('slow response from esx01'))
            expect(self.plugin.vcc.cache.get_host_state(0, 0).not_responding).to(be_true)

        with it('does not report a cancellation as an error'):
            self.finder.fail_with = Cancelled()

            expect(self.plugin.gather(self.acc)).to(be_false)
            expect(self.acc.metrics).to(be_empty)
            expect(self.acc.errors).to(be_empty)

        with it('fails when no session can be opened'):
            self.vcenter.open_error = AuthError('invalid login')

            expect(self.plugin.gather(self.acc)).to(be_false)
            expect(self.acc.errors).to(have_length(1))
            expect(self.plugin.sessions_created).to(equal(0))

    with context('set_poll_interval()'):

        with it('caps the login timeout at the poll interval'):
            plugin = VcStat(config(timeout=120))
            plugin.set_poll_interval(30)
            expect(plugin.timeout).to(equal(30))

        with it('derives cache and cool-down durations from the poll interval'):
            plugin = VcStat(config(intervals_skip_notresponding_esxcli_hosts=5),
                            vcenter_factory=lambda *args, **kwargs: self.vcenter)
            plugin.set_poll_interval(60)
            plugin.init()

            expect(plugin.vcc.data_duration).to(equal(57))
            expect(plugin.vcc.max_response_duration).to(equal(60))
            expect(plugin.vcc.skip_not_responding_for).to(equal(300))

    with context('stop()'):

        with it('cancels the running cycle and releases the session'):
            self.plugin.gather(self.acc)
            self.plugin.deadline = deadline = Deadline(60, clock=self.clock)

            self.plugin.stop()

            expect(deadline.cancelled).to(be_true)
            expect(self.vcenter.shutdowns).to(equal(1))
            expect(self.vcenter.active).to(be_false)
            expect(self.plugin.vcc).to(be_none)
