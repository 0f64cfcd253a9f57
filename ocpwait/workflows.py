# SPDX-License-Identifier: Apache-2.0

"""Waits performed by the CNF deployment between configuration changes."""

from dataclasses import dataclass, field
import re
from typing import Dict, Optional, Tuple

from loguru import logger

from ocpwait import settings
from ocpwait.conditions import (
    machine_config_pool_rollout_started,
    machine_config_pool_updated,
    network_updating,
)
from ocpwait.exceptions import DEADLINE_EXCEEDED, FetchError
from ocpwait.poller import (
    Clock,
    Fetch,
    PollOutcome,
    PollPolicy,
    ResourceReference,
    poll,
)

NETWORK_OPERATOR = ResourceReference("operator.openshift.io/v1", "Network", "cluster")
CLUSTER_VERSION = ResourceReference("config.openshift.io/v1", "ClusterVersion", "version")

PHASE_BEGIN = "begin"
PHASE_COMPLETE = "complete"


def machine_config_pool(name: str) -> ResourceReference:
    return ResourceReference(
        "machineconfiguration.openshift.io/v1", "MachineConfigPool", name
    )


@dataclass
class WorkflowResult:
    """Result of a wait made of one or more polls.

    Attributes:
        ref: Resource that was observed
        outcomes: Outcome per phase, in the order the phases ran
        failed_phase: Name of the phase that did not converge, None on success
    """

    ref: ResourceReference
    outcomes: Dict[str, PollOutcome] = field(default_factory=dict)
    failed_phase: Optional[str] = None

    @property
    def satisfied(self) -> bool:
        return self.failed_phase is None

    @property
    def outcome(self) -> Optional[PollOutcome]:
        """Outcome of the failed phase, or of the last phase on success."""
        if self.failed_phase is not None:
            return self.outcomes[self.failed_phase]
        if self.outcomes:
            return list(self.outcomes.values())[-1]
        return None


def describe_outcome(ref: ResourceReference, outcome: PollOutcome) -> str:
    if outcome.satisfied:
        return f"{ref} converged after {outcome.attempts} attempt(s)"
    return (
        f"{ref} did not converge ({outcome.failure_kind}) "
        f"after {outcome.attempts} attempt(s): {outcome.error}"
    )


def wait_for_network_update(
    fetch: Fetch,
    begin_policy: Optional[PollPolicy] = None,
    complete_policy: Optional[PollPolicy] = None,
    clock: Optional[Clock] = None,
    skip_begin: bool = False,
) -> WorkflowResult:
    """Wait for the cluster network operator to roll out a configuration change.

    The first phase waits for the operator to report that it started
    progressing, the second one for it to finish. A failed first phase
    means the update never started, a failed second phase means it
    started but got stuck or the operator degraded.
    """
    begin_policy = begin_policy or PollPolicy(
        settings.NETWORK_BEGIN_RETRIES, settings.NETWORK_BEGIN_DELAY
    )
    complete_policy = complete_policy or PollPolicy(
        settings.NETWORK_COMPLETE_RETRIES, settings.NETWORK_COMPLETE_DELAY
    )

    result = WorkflowResult(NETWORK_OPERATOR)

    if not skip_begin:
        logger.info("Wait for network operator update to begin")
        outcome = poll(NETWORK_OPERATOR, network_updating(True), begin_policy, fetch, clock)
        result.outcomes[PHASE_BEGIN] = outcome
        if not outcome.satisfied:
            logger.error("Cluster network operator failed to enter updating state")
            result.failed_phase = PHASE_BEGIN
            return result

    logger.info("Wait for network operator update to complete")
    outcome = poll(
        NETWORK_OPERATOR, network_updating(False), complete_policy, fetch, clock
    )
    result.outcomes[PHASE_COMPLETE] = outcome
    if not outcome.satisfied:
        logger.error("Cluster network operator update did not complete successfully")
        result.failed_phase = PHASE_COMPLETE

    return result


def wait_for_machine_config_pool(
    fetch: Fetch,
    name: str,
    policy: Optional[PollPolicy] = None,
    clock: Optional[Clock] = None,
    begin_policy: Optional[PollPolicy] = None,
    skip_begin: bool = False,
    require_begin: bool = False,
) -> WorkflowResult:
    """Wait for a MachineConfigPool to roll out a newly applied MachineConfig.

    The first phase gives the pool a short grace period to pick up the
    change, the second one waits for the rollout to finish. A pool that
    never leaves its idle state during the grace period is accepted as
    converged (the change may not affect it, or it rolled out faster than
    one check interval) unless ``require_begin`` is set.
    """
    policy = policy or PollPolicy(settings.MCP_RETRIES, settings.MCP_DELAY)
    begin_policy = begin_policy or PollPolicy(
        settings.MCP_BEGIN_RETRIES, settings.MCP_BEGIN_DELAY
    )
    ref = machine_config_pool(name)
    result = WorkflowResult(ref)

    if not skip_begin:
        logger.info(f"Wait for MachineConfigPool {name} to pick up the new configuration")
        outcome = poll(ref, machine_config_pool_rollout_started(), begin_policy, fetch, clock)
        result.outcomes[PHASE_BEGIN] = outcome
        if not outcome.satisfied:
            if require_begin or outcome.failure_kind != DEADLINE_EXCEEDED:
                logger.error(f"MachineConfigPool {name} did not start updating")
                result.failed_phase = PHASE_BEGIN
                return result
            logger.warning(
                f"MachineConfigPool {name} did not start updating within the grace period, "
                "checking whether it is up to date"
            )

    logger.info(f"Wait for MachineConfigPool {name} to finish updating")
    outcome = poll(ref, machine_config_pool_updated(), policy, fetch, clock)
    result.outcomes[PHASE_COMPLETE] = outcome
    if not outcome.satisfied:
        result.failed_phase = PHASE_COMPLETE
    return result


def parse_version(version: str) -> Tuple[int, int, int]:
    """Split a version like ``4.14.3`` or ``4.15.0-rc.1`` into integers."""
    match = re.match(r"^v?(\d+)\.(\d+)(?:\.(\d+))?", version or "")
    if not match:
        raise ValueError(f"Unable to parse OpenShift version '{version}'")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def get_openshift_version(fetch: Fetch) -> Tuple[int, int, int]:
    """Return the OpenShift version as (major, minor, patch).

    The version reported by the network operator is preferred, the desired
    version of the ClusterVersion object is used when it is missing or
    cannot be parsed.

    Raises:
        FetchError: When the ClusterVersion object is needed and cannot be read
        ValueError: When no parsable version was found
    """
    try:
        network = fetch(NETWORK_OPERATOR)
        return parse_version((network.get("status") or {}).get("version"))
    except FetchError as e:
        logger.debug(f"Unable to read {NETWORK_OPERATOR}: {e}")
    except ValueError as e:
        logger.debug(f"No usable version reported by {NETWORK_OPERATOR}: {e}")

    cluster_version = fetch(CLUSTER_VERSION)
    desired = (cluster_version.get("status") or {}).get("desired") or {}
    return parse_version(desired.get("version"))
