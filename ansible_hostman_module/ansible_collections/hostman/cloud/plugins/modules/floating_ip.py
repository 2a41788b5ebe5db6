#!/usr/bin/python
# -*- coding: utf-8 -*-

DOCUMENTATION = r"""
---
module: floating_ip
short_description: Manage Hostman floating IPs and their binding
description:
  - Allocate and release floating IPs.
  - Optionally bind the IP to another resource. Binding is a separate call made
    after allocation; an IP that is already bound to the target is left alone.
  - Only the binding can change after allocation.
  - Floating IPs have no name to look them up by. Running the module with
    O(state=present) and without O(id) allocates a new IP every time, so it is
    not idempotent. Register the result and pass its C(resource.id) on later runs.
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
  state:
    description: Whether the floating IP should exist.
    type: str
    choices: [present, absent]
    default: present
  id:
    description: Identifier of an existing floating IP. Without it a new IP is allocated.
    type: str
  is_ddos_guard:
    description: Enable DDoS protection.
    type: bool
    default: false
  availability_zone:
    description: Availability zone of the IP.
    type: str
    default: ams-1
  comment:
    description: Free-text comment.
    type: str
  resource_type:
    description: Type of the resource to bind to, e.g. C(server).
    type: str
  resource_id:
    description: Identifier of the resource to bind to. Numbers are accepted.
    type: raw
"""

EXAMPLES = r"""
- name: Allocate an IP and bind it to a server
  hostman.cloud.floating_ip:
    comment: web frontend
    resource_type: server
    resource_id: "{{ web.resource.id }}"
  register: fip

- name: Move the IP to another server
  hostman.cloud.floating_ip:
    id: "{{ fip.resource.id }}"
    resource_type: server
    resource_id: 4242
"""

RETURN = r"""
resource:
  description: The normalized floating IP record, including the allocated C(ip).
  returned: when the IP exists
  type: dict
commands:
  description: The API requests planned or executed.
  returned: always
  type: list
"""

from ansible.module_utils.basic import AnsibleModule

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.config import (
    resource_argument_spec,
)
from ansible_collections.hostman.cloud.plugins.module_utils.hostman.crud_runner import (
    CrudRunner,
)

RUNNER_CONTEXT = {"resource_type": "floating_ip"}


def main():
    module = AnsibleModule(
        argument_spec=resource_argument_spec(RUNNER_CONTEXT["resource_type"]),
        supports_check_mode=True,
        required_together=[("resource_type", "resource_id")],
        required_if=[("state", "absent", ("id",))],
    )
    runner = CrudRunner(module, RUNNER_CONTEXT)
    runner.run()


if __name__ == "__main__":
    main()
