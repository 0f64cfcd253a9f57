# SPDX-License-Identifier: Apache-2.0

import argparse

from cliff.command import Command
from loguru import logger

from ocpwait import settings
from ocpwait.commands import exit_code, get_fetcher
from ocpwait.conditions import condition_equals, to_bool
from ocpwait.poller import PollPolicy, ResourceReference, poll
from ocpwait.workflows import (
    describe_outcome,
    wait_for_machine_config_pool,
    wait_for_network_update,
)


def condition_assignment(value):
    """Parse TYPE=STATUS, e.g. Degraded=True."""
    condition_type, sep, status = value.partition("=")
    if not sep or not condition_type:
        raise argparse.ArgumentTypeError(f"'{value}' is not of the form TYPE=STATUS")
    parsed = to_bool(status)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"'{status}' is not True or False")
    return condition_type, parsed


def condition_value(value):
    parsed = to_bool(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"'{value}' is not True or False")
    return parsed


def add_policy_arguments(parser, retries, delay, prefix=""):
    option = f"--{prefix}-" if prefix else "--"
    parser.add_argument(
        f"{option}retries",
        default=retries,
        type=int,
        help="Maximum number of checks",
    )
    parser.add_argument(
        f"{option}delay",
        default=delay,
        type=float,
        help="Delay in second(s) between two checks",
    )
    parser.add_argument(
        f"{option}timeout",
        default=None,
        type=float,
        help="Overall deadline in second(s), in addition to the number of checks",
    )


def add_format_argument(parser):
    parser.add_argument(
        "--format",
        default="log",
        help="Output type",
        const="log",
        nargs="?",
        choices=["script", "log"],
    )


def report(ref, outcome, format, phase=None):
    if format == "script":
        state = "SATISFIED" if outcome.satisfied else outcome.failure_kind
        subject = f"{ref} {phase}" if phase else f"{ref}"
        print(f"{subject} = {state.upper().replace('-', '_')}")
    elif outcome.satisfied:
        logger.info(describe_outcome(ref, outcome))
    else:
        if phase:
            logger.error(f"{ref} failed in phase '{phase}'")
        logger.error(describe_outcome(ref, outcome))
    return exit_code(outcome)


def report_workflow(result, format):
    phase = result.failed_phase or list(result.outcomes)[-1]
    return report(result.ref, result.outcome, format, phase)


class Condition(Command):
    def get_parser(self, prog_name):
        parser = super(Condition, self).get_parser(prog_name)
        parser.add_argument(
            "api_version", type=str, help="API version, e.g. operator.openshift.io/v1"
        )
        parser.add_argument("kind", type=str, help="Kind of the resource")
        parser.add_argument("name", type=str, help="Name of the resource")
        parser.add_argument(
            "--namespace",
            default=None,
            type=str,
            help="Namespace of the resource, omit for cluster scoped resources",
        )
        parser.add_argument(
            "--type",
            required=True,
            type=str,
            dest="condition_type",
            help="Type of the condition to wait for",
        )
        parser.add_argument(
            "--status",
            default=True,
            type=condition_value,
            help="Status of the condition to wait for (default: True)",
        )
        parser.add_argument(
            "--fail-on",
            default=[],
            action="append",
            type=condition_assignment,
            help="Stop waiting when a condition reaches a status, e.g. Degraded=True",
        )
        add_policy_arguments(parser, settings.DEFAULT_RETRIES, settings.DEFAULT_DELAY)
        add_format_argument(parser)
        return parser

    def take_action(self, parsed_args):
        ref = ResourceReference(
            parsed_args.api_version,
            parsed_args.kind,
            parsed_args.name,
            parsed_args.namespace,
        )
        policy = PollPolicy(parsed_args.retries, parsed_args.delay, parsed_args.timeout)
        predicate = condition_equals(
            parsed_args.condition_type,
            parsed_args.status,
            fail_on=dict(parsed_args.fail_on),
        )

        logger.info(
            f"Wait for condition {parsed_args.condition_type}={parsed_args.status} of {ref}"
        )
        outcome = poll(ref, predicate, policy, get_fetcher(self.app.options))
        return report(ref, outcome, parsed_args.format)


class MachineConfigPool(Command):
    def get_parser(self, prog_name):
        parser = super(MachineConfigPool, self).get_parser(prog_name)
        parser.add_argument(
            "name", type=str, help="Name of the MachineConfigPool, e.g. worker-cnf"
        )
        parser.add_argument(
            "--skip-begin",
            default=False,
            help="Do not wait for the pool to pick up a new configuration first",
            action="store_true",
        )
        parser.add_argument(
            "--require-begin",
            default=False,
            help="Fail when the pool does not start updating within the grace period",
            action="store_true",
        )
        add_policy_arguments(
            parser, settings.MCP_BEGIN_RETRIES, settings.MCP_BEGIN_DELAY, prefix="begin"
        )
        add_policy_arguments(parser, settings.MCP_RETRIES, settings.MCP_DELAY)
        add_format_argument(parser)
        return parser

    def take_action(self, parsed_args):
        begin_policy = PollPolicy(
            parsed_args.begin_retries,
            parsed_args.begin_delay,
            parsed_args.begin_timeout,
        )
        policy = PollPolicy(parsed_args.retries, parsed_args.delay, parsed_args.timeout)
        result = wait_for_machine_config_pool(
            get_fetcher(self.app.options),
            parsed_args.name,
            policy,
            begin_policy=begin_policy,
            skip_begin=parsed_args.skip_begin,
            require_begin=parsed_args.require_begin,
        )
        return report_workflow(result, parsed_args.format)


class Network(Command):
    def get_parser(self, prog_name):
        parser = super(Network, self).get_parser(prog_name)
        parser.add_argument(
            "--skip-begin",
            default=False,
            help="Only wait for a running update to complete",
            action="store_true",
        )
        add_policy_arguments(
            parser,
            settings.NETWORK_BEGIN_RETRIES,
            settings.NETWORK_BEGIN_DELAY,
            prefix="begin",
        )
        add_policy_arguments(
            parser,
            settings.NETWORK_COMPLETE_RETRIES,
            settings.NETWORK_COMPLETE_DELAY,
            prefix="complete",
        )
        add_format_argument(parser)
        return parser

    def take_action(self, parsed_args):
        begin_policy = PollPolicy(
            parsed_args.begin_retries,
            parsed_args.begin_delay,
            parsed_args.begin_timeout,
        )
        complete_policy = PollPolicy(
            parsed_args.complete_retries,
            parsed_args.complete_delay,
            parsed_args.complete_timeout,
        )
        result = wait_for_network_update(
            get_fetcher(self.app.options),
            begin_policy,
            complete_policy,
            skip_begin=parsed_args.skip_begin,
        )
        return report_workflow(result, parsed_args.format)
