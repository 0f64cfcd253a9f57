"""Test the network operator and MachineConfigPool waits."""

import unittest

from ocpwait.exceptions import (
    DeadlineExceeded,
    TerminalConditionError,
    TransientFetchError,
)
from ocpwait.poller import PollPolicy
from ocpwait.workflows import (
    CLUSTER_VERSION,
    NETWORK_OPERATOR,
    PHASE_BEGIN,
    PHASE_COMPLETE,
    describe_outcome,
    get_openshift_version,
    parse_version,
    wait_for_machine_config_pool,
    wait_for_network_update,
)

from .fixtures import FakeClock, SequenceFetcher, machine_config_pool, network

BEGIN = PollPolicy(30, 10)
COMPLETE = PollPolicy(60, 20)


class TestWaitForNetworkUpdate(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()

    def test_update_begins_and_completes(self):
        fetch = SequenceFetcher(
            network(False), network(True), network(True), network(False)
        )
        result = wait_for_network_update(fetch, BEGIN, COMPLETE, self.clock)

        self.assertTrue(result.satisfied)
        self.assertIsNone(result.failed_phase)
        self.assertEqual(result.outcomes[PHASE_BEGIN].attempts, 2)
        self.assertEqual(result.outcomes[PHASE_COMPLETE].attempts, 2)
        self.assertIs(result.outcome, result.outcomes[PHASE_COMPLETE])
        self.assertEqual(self.clock.sleeps, [10, 20])

    def test_update_never_begins(self):
        fetch = SequenceFetcher(network(False))
        result = wait_for_network_update(fetch, BEGIN, COMPLETE, self.clock)

        self.assertFalse(result.satisfied)
        self.assertEqual(result.failed_phase, PHASE_BEGIN)
        self.assertNotIn(PHASE_COMPLETE, result.outcomes)
        self.assertIsInstance(result.outcome.error, DeadlineExceeded)
        self.assertEqual(len(fetch.calls), 30)

    def test_update_stuck(self):
        fetch = SequenceFetcher(network(True))
        result = wait_for_network_update(fetch, BEGIN, COMPLETE, self.clock)

        self.assertEqual(result.failed_phase, PHASE_COMPLETE)
        self.assertTrue(result.outcomes[PHASE_BEGIN].satisfied)
        self.assertEqual(result.outcome.attempts, 60)
        self.assertIsInstance(result.outcome.error, DeadlineExceeded)

    def test_operator_degraded(self):
        fetch = SequenceFetcher(network(True), network(True, degraded=True))
        result = wait_for_network_update(fetch, BEGIN, COMPLETE, self.clock)

        self.assertEqual(result.failed_phase, PHASE_COMPLETE)
        self.assertIsInstance(result.outcome.error, TerminalConditionError)
        self.assertEqual(len(fetch.calls), 2)

    def test_skip_begin(self):
        fetch = SequenceFetcher(network(False))
        result = wait_for_network_update(fetch, BEGIN, COMPLETE, self.clock, skip_begin=True)

        self.assertTrue(result.satisfied)
        self.assertEqual(list(result.outcomes), [PHASE_COMPLETE])
        self.assertEqual(fetch.calls, [NETWORK_OPERATOR])


class TestWaitForMachineConfigPool(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.begin = PollPolicy(3, 10)

    def wait(self, fetch, **kwargs):
        return wait_for_machine_config_pool(
            fetch, "worker-cnf", PollPolicy(10, 5), self.clock, begin_policy=self.begin, **kwargs
        )

    def test_rollout(self):
        fetch = SequenceFetcher(
            TransientFetchError("API server returned 404 Not Found"),
            machine_config_pool(updated=False, updating=True, updated_machines=0),
            machine_config_pool(updated=False, updating=True, updated_machines=2),
            machine_config_pool(),
        )
        result = self.wait(fetch)

        self.assertTrue(result.satisfied)
        self.assertEqual(result.ref.name, "worker-cnf")
        self.assertEqual(result.ref.kind, "MachineConfigPool")
        self.assertEqual(result.outcomes[PHASE_BEGIN].attempts, 2)
        self.assertEqual(result.outcomes[PHASE_COMPLETE].attempts, 2)

    def test_idle_pool_before_rollout_is_not_converged(self):
        fetch = SequenceFetcher(
            machine_config_pool(),
            machine_config_pool(updated=False, updating=True, updated_machines=0),
            machine_config_pool(),
        )
        result = self.wait(fetch)

        self.assertTrue(result.satisfied)
        self.assertEqual(len(fetch.calls), 3)
        self.assertEqual(result.outcomes[PHASE_BEGIN].attempts, 2)
        self.assertEqual(result.outcomes[PHASE_COMPLETE].attempts, 1)

    def test_completion_waits_for_new_rendered_configuration(self):
        fetch = SequenceFetcher(
            machine_config_pool(target="rendered-worker-cnf-2"),
            machine_config_pool(target="rendered-worker-cnf-2"),
            machine_config_pool(rendered="rendered-worker-cnf-2"),
        )
        result = self.wait(fetch)

        self.assertTrue(result.satisfied)
        self.assertEqual(result.outcomes[PHASE_COMPLETE].attempts, 2)

    def test_no_rollout_within_grace_period(self):
        fetch = SequenceFetcher(machine_config_pool())
        result = self.wait(fetch)

        self.assertTrue(result.satisfied)
        self.assertEqual(result.outcomes[PHASE_BEGIN].failure_kind, "deadline-exceeded")
        self.assertTrue(result.outcomes[PHASE_COMPLETE].satisfied)
        self.assertEqual(len(fetch.calls), 4)
        self.assertEqual(self.clock.sleeps, [10, 10])

    def test_require_begin(self):
        fetch = SequenceFetcher(machine_config_pool())
        result = self.wait(fetch, require_begin=True)

        self.assertFalse(result.satisfied)
        self.assertEqual(result.failed_phase, PHASE_BEGIN)
        self.assertNotIn(PHASE_COMPLETE, result.outcomes)
        self.assertEqual(len(fetch.calls), 3)

    def test_skip_begin(self):
        fetch = SequenceFetcher(machine_config_pool())
        result = self.wait(fetch, skip_begin=True)

        self.assertTrue(result.satisfied)
        self.assertEqual(list(result.outcomes), [PHASE_COMPLETE])
        self.assertEqual(len(fetch.calls), 1)

    def test_rollout_stuck(self):
        fetch = SequenceFetcher(machine_config_pool(updated=False, updating=True, updated_machines=1))
        result = self.wait(fetch)

        self.assertEqual(result.failed_phase, PHASE_COMPLETE)
        self.assertTrue(result.outcomes[PHASE_BEGIN].satisfied)
        self.assertEqual(result.outcome.failure_kind, "deadline-exceeded")
        self.assertEqual(result.outcome.attempts, 10)

    def test_degraded(self):
        fetch = SequenceFetcher(machine_config_pool(degraded=True))
        result = self.wait(fetch)

        self.assertEqual(result.failed_phase, PHASE_BEGIN)
        self.assertEqual(result.outcome.failure_kind, "terminal-condition")
        self.assertEqual(result.outcome.attempts, 1)
        self.assertNotIn(PHASE_COMPLETE, result.outcomes)


class TestOpenshiftVersion(unittest.TestCase):
    def test_parse_version(self):
        self.assertEqual(parse_version("4.14.3"), (4, 14, 3))
        self.assertEqual(parse_version("4.15.0-rc.1"), (4, 15, 0))
        self.assertEqual(parse_version("v4.12"), (4, 12, 0))

    def test_parse_invalid_version(self):
        with self.assertRaises(ValueError):
            parse_version("")

    def test_version_from_network_operator(self):
        fetch = SequenceFetcher(network(False, version="4.16.2"))
        self.assertEqual(get_openshift_version(fetch), (4, 16, 2))
        self.assertEqual(fetch.calls, [NETWORK_OPERATOR])

    def test_version_from_cluster_version(self):
        fetch = SequenceFetcher(
            network(False, version=None),
            {"status": {"desired": {"version": "4.13.9"}}},
        )
        self.assertEqual(get_openshift_version(fetch), (4, 13, 9))
        self.assertEqual(fetch.calls, [NETWORK_OPERATOR, CLUSTER_VERSION])

    def test_unparsable_network_version_falls_back(self):
        fetch = SequenceFetcher(
            network(False, version="unknown"),
            {"status": {"desired": {"version": "4.13.9"}}},
        )
        self.assertEqual(get_openshift_version(fetch), (4, 13, 9))
        self.assertEqual(fetch.calls, [NETWORK_OPERATOR, CLUSTER_VERSION])

    def test_no_version_reported(self):
        fetch = SequenceFetcher(network(False, version="unknown"), {"status": {}})
        with self.assertRaises(ValueError):
            get_openshift_version(fetch)


class TestDescribeOutcome(unittest.TestCase):
    def test_describe(self):
        fetch = SequenceFetcher(network(True))
        result = wait_for_network_update(
            fetch, PollPolicy(1, 1), PollPolicy(2, 1), FakeClock()
        )
        text = describe_outcome(result.ref, result.outcome)

        self.assertTrue(text.startswith("Network/cluster did not converge (deadline-exceeded)"))
        self.assertIn("after 2 attempt(s)", text)
