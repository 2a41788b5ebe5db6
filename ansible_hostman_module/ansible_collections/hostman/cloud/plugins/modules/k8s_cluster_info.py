#!/usr/bin/python
# -*- coding: utf-8 -*-

DOCUMENTATION = r"""
---
module: k8s_cluster_info
short_description: Get information about a Hostman Kubernetes cluster
description:
  - Reads a single Kubernetes cluster and returns its normalized record.
  - Fails when the Kubernetes cluster does not exist.
options:
  api_url:
    description: Base URL of the Hostman API. Falls back to C(HOSTMAN_API_URL).
    type: str
    default: https://hostman.com/api/v1
  access_token:
    description: API token. Falls back to C(HOSTMAN_TOKEN).
    type: str
    required: true
  request_timeout:
    description: Timeout in seconds for a single HTTP request.
    type: int
    default: 30
  id:
    description: Identifier of the resource.
    type: str
  name:
    description: Exact name of the resource. Used when O(id) is omitted.
    type: str
"""

EXAMPLES = r"""
- name: Look up the Kubernetes cluster
  hostman.cloud.k8s_cluster_info:
    name: web
  register: result
"""

RETURN = r"""
resource:
  description: The normalized Kubernetes cluster record.
  returned: success
  type: dict
"""

from ansible.module_utils.basic import AnsibleModule

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.config import (
    facts_argument_spec,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.facts_runner import (
    FactsRunner,
)

RUNNER_CONTEXT = {"resource_type": "k8s_cluster"}


def main():
    module = AnsibleModule(
        argument_spec=facts_argument_spec(RUNNER_CONTEXT["resource_type"]),
        supports_check_mode=True,
        required_one_of=[("id", "name")],
    )
    runner = FactsRunner(module, RUNNER_CONTEXT)
    runner.run()


if __name__ == "__main__":
    main()
