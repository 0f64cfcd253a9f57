# SPDX-License-Identifier: Apache-2.0

import os


# Read secret from file
def read_secret(secret_name):
    try:
        f = open("/run/secrets/" + secret_name, "r", encoding="utf-8")
    except EnvironmentError:
        return ""
    else:
        with f:
            return f.readline().strip()


# The playbooks export K8S_AUTH_KUBECONFIG for the kubernetes.core modules
KUBECONFIG = os.getenv(
    "OCPWAIT_KUBECONFIG",
    os.getenv("KUBECONFIG", os.getenv("K8S_AUTH_KUBECONFIG")),
)
KUBE_CONTEXT = os.getenv("OCPWAIT_CONTEXT", None)

# Alternative to a kubeconfig file: API URL plus a service account token
KUBE_API_URL = os.getenv("OCPWAIT_API_URL", None)
KUBE_API_TOKEN = os.getenv("OCPWAIT_API_TOKEN", read_secret("OCPWAIT_API_TOKEN"))
KUBE_VERIFY_SSL = os.getenv("OCPWAIT_VERIFY_SSL", "True") == "True"

# Request timeout for a single read against the API server in seconds
KUBE_REQUEST_TIMEOUT = int(os.getenv("OCPWAIT_REQUEST_TIMEOUT", "30"))

# Network operator update: 30 x 10 seconds to begin, 60 x 20 seconds to complete
NETWORK_BEGIN_RETRIES = int(os.getenv("OCPWAIT_NETWORK_BEGIN_RETRIES", "30"))
NETWORK_BEGIN_DELAY = float(os.getenv("OCPWAIT_NETWORK_BEGIN_DELAY", "10"))
NETWORK_COMPLETE_RETRIES = int(os.getenv("OCPWAIT_NETWORK_COMPLETE_RETRIES", "60"))
NETWORK_COMPLETE_DELAY = float(os.getenv("OCPWAIT_NETWORK_COMPLETE_DELAY", "20"))

# MachineConfigPool rollout: 90 x 20 seconds = 30 minutes
MCP_RETRIES = int(os.getenv("OCPWAIT_MCP_RETRIES", "90"))
MCP_DELAY = float(os.getenv("OCPWAIT_MCP_DELAY", "20"))

# Defaults for the generic condition wait
DEFAULT_RETRIES = int(os.getenv("OCPWAIT_DEFAULT_RETRIES", "30"))
DEFAULT_DELAY = float(os.getenv("OCPWAIT_DEFAULT_DELAY", "10"))

# Grace period for the MachineConfigPool to pick up a new MachineConfig: 6 x 10 seconds
MCP_BEGIN_RETRIES = int(os.getenv("OCPWAIT_MCP_BEGIN_RETRIES", "6"))
MCP_BEGIN_DELAY = float(os.getenv("OCPWAIT_MCP_BEGIN_DELAY", "10"))
