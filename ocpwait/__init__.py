# SPDX-License-Identifier: Apache-2.0

from ocpwait.version import __version__  # noqa: F401
