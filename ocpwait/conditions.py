# SPDX-License-Identifier: Apache-2.0

"""Predicates over ``status.conditions`` of OpenShift resources.

Conditions are looked up by their ``type`` and never by their position
in the list, the order is not part of the API contract.
"""

from typing import Any, Dict, List, Optional

from ocpwait.poller import Verdict

MCP_DEGRADED_CONDITIONS = ["Degraded", "NodeDegraded", "RenderDegraded"]


def get_conditions(obj: Dict[str, Any]) -> List[Dict[str, Any]]:
    status = (obj or {}).get("status") or {}
    return status.get("conditions") or []


def find_condition(obj: Dict[str, Any], condition_type: str) -> Optional[Dict[str, Any]]:
    for condition in get_conditions(obj):
        if condition.get("type") == condition_type:
            return condition
    return None


def to_bool(value) -> Optional[bool]:
    """Convert a condition status ("True", "False", "Unknown") to a bool or None."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
    return None


def condition_status(obj: Dict[str, Any], condition_type: str) -> Optional[bool]:
    condition = find_condition(obj, condition_type)
    if condition is None:
        return None
    return to_bool(condition.get("status"))


def _describe(condition_type, condition):
    if condition is None:
        return f"condition {condition_type} is not reported"
    text = f"{condition_type}={condition.get('status')}"
    if condition.get("reason"):
        text += f" ({condition['reason']})"
    if condition.get("message"):
        text += f": {condition['message']}"
    return text


def _check_failures(obj, fail_on):
    for condition_type, status in (fail_on or {}).items():
        if condition_status(obj, condition_type) is status:
            return Verdict.FAILED, _describe(
                condition_type, find_condition(obj, condition_type)
            )
    return None


def condition_equals(condition_type: str, expected: bool, fail_on=None):
    """Build a predicate that waits for ``condition_type`` to become ``expected``.

    Args:
        condition_type: Type of the condition to watch
        expected: Status to wait for
        fail_on: Mapping of condition type to the status that makes the
            wait fail immediately, e.g. ``{"Degraded": True}``

    Returns:
        Predicate usable with ``ocpwait.poller.poll``
    """

    def predicate(obj):
        failure = _check_failures(obj, fail_on)
        if failure:
            return failure

        condition = find_condition(obj, condition_type)
        if condition is not None and to_bool(condition.get("status")) is expected:
            return Verdict.SATISFIED, _describe(condition_type, condition)
        return Verdict.NOT_YET, _describe(condition_type, condition)

    return predicate


def machine_config_pool_updated():
    """Predicate for a MachineConfigPool that finished rolling out.

    The pool has converged when the controller observed the latest
    generation, ``Updated`` is True, ``Updating`` is False and every
    machine runs the new rendered configuration. A degraded pool fails
    the wait.
    """

    def predicate(obj):
        failure = _check_failures(
            obj, {condition: True for condition in MCP_DEGRADED_CONDITIONS}
        )
        if failure:
            return failure

        metadata = obj.get("metadata") or {}
        status = obj.get("status") or {}

        generation = metadata.get("generation")
        observed = status.get("observedGeneration")
        if generation is not None and (observed is None or observed < generation):
            return Verdict.NOT_YET, f"observed generation {observed} of {generation}"

        machines = status.get("machineCount", 0)
        updated_machines = status.get("updatedMachineCount", 0)
        progress = f"{updated_machines}/{machines} machines updated"

        target = ((obj.get("spec") or {}).get("configuration") or {}).get("name")
        current = (status.get("configuration") or {}).get("name")
        if target and current and target != current:
            return Verdict.NOT_YET, f"{progress}, rendering {current} -> {target}"
        if condition_status(obj, "Updating") is not False:
            return Verdict.NOT_YET, f"{progress}, still updating"
        if condition_status(obj, "Updated") is not True:
            return Verdict.NOT_YET, f"{progress}, not yet updated"
        if updated_machines != machines:
            return Verdict.NOT_YET, progress

        return Verdict.SATISFIED, progress

    return predicate


def machine_config_pool_rollout_started():
    """Predicate for a MachineConfigPool that picked up a new MachineConfig.

    Right after a MachineConfig is applied the pool still looks idle on
    the old rendered configuration. The rollout has started once the
    target rendered configuration differs from the current one,
    ``Updating`` turned True or machines are behind.
    """

    def predicate(obj):
        failure = _check_failures(
            obj, {condition: True for condition in MCP_DEGRADED_CONDITIONS}
        )
        if failure:
            return failure

        spec = obj.get("spec") or {}
        status = obj.get("status") or {}
        target = (spec.get("configuration") or {}).get("name")
        current = (status.get("configuration") or {}).get("name")

        if target and current and target != current:
            return Verdict.SATISFIED, f"rendering {current} -> {target}"
        if condition_status(obj, "Updating") is True:
            return Verdict.SATISFIED, "Updating=True"
        machines = status.get("machineCount", 0)
        updated_machines = status.get("updatedMachineCount", 0)
        if updated_machines < machines:
            return Verdict.SATISFIED, f"{updated_machines}/{machines} machines updated"

        return Verdict.NOT_YET, f"pool idle on {current or 'unknown configuration'}"

    return predicate


def network_updating(expected: bool):
    """Predicate on the ``Progressing`` condition of the Network operator.

    ``expected=True`` waits for an update to begin, ``expected=False``
    waits for it to complete. A degraded operator fails the wait.
    """
    return condition_equals("Progressing", expected, fail_on={"Degraded": True})
