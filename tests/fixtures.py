"""Fake collaborators and resource builders shared by the tests."""

from ocpwait.poller import Clock


class FakeClock(Clock):
    """Virtual time: sleeping advances the clock instantly."""

    def __init__(self, start=100.0):
        self.time = start
        self.sleeps = []

    def now(self):
        return self.time

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.time += seconds


class SequenceFetcher:
    """Returns the given objects in order, raising the ones that are exceptions.

    The last item is repeated once the sequence is used up.
    """

    def __init__(self, *items):
        self.items = list(items)
        self.calls = []

    def __call__(self, ref):
        self.calls.append(ref)
        index = min(len(self.calls), len(self.items)) - 1
        item = self.items[index]
        if isinstance(item, Exception):
            raise item
        return item


def condition(condition_type, status, reason=None, message=None):
    result = {"type": condition_type, "status": status}
    if reason:
        result["reason"] = reason
    if message:
        result["message"] = message
    return result


def network(progressing, degraded=False, version="4.14.3"):
    # Same order the operator reports them in, Progressing at index 3
    return {
        "apiVersion": "operator.openshift.io/v1",
        "kind": "Network",
        "metadata": {"name": "cluster"},
        "status": {
            "version": version,
            "conditions": [
                condition("ManagementStateDegraded", "False"),
                condition("Degraded", "True" if degraded else "False"),
                condition("Upgradeable", "True"),
                condition("Progressing", "True" if progressing else "False"),
                condition("Available", "True"),
            ],
        },
    }


def machine_config_pool(
    updated=True,
    updating=False,
    degraded=False,
    machines=3,
    updated_machines=3,
    generation=2,
    observed_generation=2,
    rendered="rendered-worker-cnf-1",
    target=None,
):
    return {
        "apiVersion": "machineconfiguration.openshift.io/v1",
        "kind": "MachineConfigPool",
        "metadata": {"name": "worker-cnf", "generation": generation},
        "spec": {"configuration": {"name": target or rendered}},
        "status": {
            "observedGeneration": observed_generation,
            "configuration": {"name": rendered},
            "machineCount": machines,
            "updatedMachineCount": updated_machines,
            "readyMachineCount": updated_machines,
            "degradedMachineCount": 1 if degraded else 0,
            "conditions": [
                condition("RenderDegraded", "False"),
                condition("NodeDegraded", "True" if degraded else "False"),
                condition("Degraded", "True" if degraded else "False"),
                condition("Updated", "True" if updated else "False"),
                condition("Updating", "True" if updating else "False"),
            ],
        },
    }
