#!/usr/bin/python
# -*- coding: utf-8 -*-

DOCUMENTATION = r"""
---
module: server
short_description: Manage Hostman virtual servers
description:
  - Create, update and delete virtual servers.
  - Creation waits until the generated root password is available.
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
    description: Whether the server should exist.
    type: str
    choices: [present, absent]
    default: present
  id:
    description: Identifier of an existing server. When omitted the server is looked up by O(name).
    type: str
  name:
    description: Server name. Required for creation.
    type: str
  bandwidth:
    description: Network bandwidth in Mbit/s. Required for creation.
    type: int
  preset_id:
    description: Tariff preset.
    type: int
  os_id:
    description: Operating system. Ignored when O(image_id) is set.
    type: int
  image_id:
    description: Image to install. Takes precedence over O(os_id).
    type: str
  is_ddos_guard:
    description: Enable DDoS protection. Required for creation.
    type: bool
  wait:
    description: Wait for the root password after creation.
    type: bool
    default: true
  timeout:
    description: Seconds to wait before giving up. Defaults to 1800.
    type: int
  interval:
    description: Seconds between polls. Defaults to 5.
    type: int
"""

EXAMPLES = r"""
- name: Create a web server
  hostman.cloud.server:
    name: web
    bandwidth: 200
    is_ddos_guard: false
    preset_id: 2447
    os_id: 99
  register: web

- name: Delete it again
  hostman.cloud.server:
    id: "{{ web.resource.id }}"
    state: absent
"""

RETURN = r"""
resource:
  description: The normalized server record, including C(root_pass).
  returned: when the server exists
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

RUNNER_CONTEXT = {"resource_type": "server"}


def main():
    module = AnsibleModule(
        argument_spec=resource_argument_spec(RUNNER_CONTEXT["resource_type"]),
        supports_check_mode=True,
        required_one_of=[("id", "name")],
    )
    runner = CrudRunner(module, RUNNER_CONTEXT)
    runner.run()


if __name__ == "__main__":
    main()
