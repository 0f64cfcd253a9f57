# SPDX-License-Identifier: Apache-2.0

from cliff.command import Command
from loguru import logger
from tabulate import tabulate
import yaml

from ocpwait.commands import EXIT_ERROR, EXIT_FETCH_FAILED, get_fetcher
from ocpwait.conditions import get_conditions
from ocpwait.exceptions import FetchError
from ocpwait.poller import ResourceReference
from ocpwait.workflows import get_openshift_version


class Conditions(Command):
    def get_parser(self, prog_name):
        parser = super(Conditions, self).get_parser(prog_name)
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
            "--output",
            default="table",
            choices=["table", "yaml"],
            help="Print the conditions as table or the whole status as YAML",
        )
        return parser

    def take_action(self, parsed_args):
        ref = ResourceReference(
            parsed_args.api_version,
            parsed_args.kind,
            parsed_args.name,
            parsed_args.namespace,
        )

        try:
            obj = get_fetcher(self.app.options)(ref)
        except FetchError as e:
            logger.error(str(e))
            return EXIT_FETCH_FAILED

        if parsed_args.output == "yaml":
            print(yaml.safe_dump(obj.get("status") or {}, default_flow_style=False))
            return

        table = []
        for condition in get_conditions(obj):
            table.append(
                [
                    condition.get("type"),
                    condition.get("status"),
                    condition.get("reason", ""),
                    condition.get("lastTransitionTime", ""),
                    condition.get("message", ""),
                ]
            )

        print(
            tabulate(
                table,
                headers=["Type", "Status", "Reason", "Last Transition", "Message"],
                tablefmt="psql",
            )
        )


class Version(Command):
    def take_action(self, parsed_args):
        try:
            major, minor, patch = get_openshift_version(get_fetcher(self.app.options))
        except FetchError as e:
            logger.error(f"Unable to determine the OpenShift version: {e}")
            return EXIT_FETCH_FAILED
        except ValueError as e:
            logger.error(str(e))
            return EXIT_ERROR

        print(f"{major}.{minor}.{patch}")
