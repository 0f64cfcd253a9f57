# SPDX-License-Identifier: Apache-2.0

from ocpwait.exceptions import DEADLINE_EXCEEDED, FETCH_FAILED, TERMINAL_CONDITION
from ocpwait.kube import KubeFetcher, get_api_client

EXIT_SATISFIED = 0
EXIT_ERROR = 1
EXIT_DEADLINE_EXCEEDED = 2
EXIT_TERMINAL_CONDITION = 3
EXIT_FETCH_FAILED = 4

EXIT_CODES = {
    DEADLINE_EXCEEDED: EXIT_DEADLINE_EXCEEDED,
    TERMINAL_CONDITION: EXIT_TERMINAL_CONDITION,
    FETCH_FAILED: EXIT_FETCH_FAILED,
}


def get_fetcher(options):
    return KubeFetcher(get_api_client(options.kubeconfig, options.context))


def exit_code(outcome):
    if outcome.satisfied:
        return EXIT_SATISFIED
    return EXIT_CODES[outcome.failure_kind]
