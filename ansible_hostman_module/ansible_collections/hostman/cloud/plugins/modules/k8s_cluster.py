#!/usr/bin/python
# -*- coding: utf-8 -*-

DOCUMENTATION = r"""
---
module: k8s_cluster
short_description: Manage Hostman managed Kubernetes clusters
description:
  - Create, update and delete Kubernetes clusters and their worker groups.
  - Creation waits until the cluster reports a ready status; deletion waits
    until the cluster can no longer be read.
  - The kubeconfig is fetched from its own endpoint. When that fails the module
    warns and still returns the other attributes.
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
    description: Whether the cluster should exist.
    type: str
    choices: [present, absent]
    default: present
  id:
    description: Identifier of an existing cluster. When omitted the cluster is looked up by O(name).
    type: str
  name:
    description: Cluster name. Required for creation.
    type: str
  k8s_version:
    description: Kubernetes version. Required for creation.
    type: str
  network_driver:
    description: Network driver, e.g. C(flannel) or C(calico). Required for creation.
    type: str
  availability_zone:
    description: Availability zone.
    type: str
    default: ams-1
  description:
    description: Free-text description.
    type: str
  preset_id:
    description: Master node preset. Mutually exclusive with O(configuration).
    type: int
  configuration:
    description: Explicit master node configuration. Mutually exclusive with O(preset_id).
    type: dict
    suboptions:
      configurator_id:
        description: Configurator.
        type: int
      cpu:
        description: CPU count.
        type: int
      ram:
        description: RAM in MB.
        type: int
      disk:
        description: Disk in MB.
        type: int
  worker_groups:
    description: Worker node groups.
    type: list
    elements: dict
    suboptions:
      name:
        description: Group name.
        type: str
        required: true
      preset_id:
        description: Node preset. Mutually exclusive with the group's O(worker_groups[].configuration).
        type: int
      configuration:
        description: Explicit node configuration.
        type: dict
        suboptions:
          configurator_id:
            description: Configurator.
            type: int
          cpu:
            description: CPU count.
            type: int
          ram:
            description: RAM in MB.
            type: int
          disk:
            description: Disk in MB.
            type: int
      node_count:
        description: Number of nodes between 1 and 100.
        type: int
        required: true
      is_autoscaling:
        description: Enable autoscaling.
        type: bool
        default: false
      autoscaling_min:
        description: Minimum number of nodes, at least 2. Required with O(worker_groups[].is_autoscaling).
        type: int
      autoscaling_max:
        description: Maximum number of nodes, at least 2. Required with O(worker_groups[].is_autoscaling).
        type: int
      labels:
        description: Node labels.
        type: list
        elements: dict
        suboptions:
          key:
            description: Label key.
            type: str
            required: true
          value:
            description: Label value.
            type: str
            required: true
  is_ingress:
    description: Install the ingress controller.
    type: bool
  is_k8s_dashboard:
    description: Install the Kubernetes dashboard.
    type: bool
  wait:
    description: Wait for readiness after creation and for removal after deletion.
    type: bool
    default: true
  timeout:
    description: Seconds to wait. Defaults to 1800 for creation and 900 for deletion.
    type: int
  interval:
    description: Seconds between polls. Defaults to 10.
    type: int
  success_states:
    description: Statuses treated as ready. Defaults to C(ready), C(running), C(started).
    type: list
    elements: str
  failure_states:
    description: Statuses treated as failed. Defaults to C(error), C(failed), C(deleted).
    type: list
    elements: str
  lenient_delete:
    description:
      - Treat any read error while waiting for deletion as confirmation.
      - Without it only a not-found answer confirms the deletion.
    type: bool
    default: false
"""

EXAMPLES = r"""
- name: Create a cluster with two worker groups
  hostman.cloud.k8s_cluster:
    name: prod
    k8s_version: "1.28"
    network_driver: flannel
    preset_id: 1001
    worker_groups:
      - name: general
        preset_id: 2001
        node_count: 3
      - name: batch
        configuration: {configurator_id: 7, cpu: 4, ram: 8192, disk: 81920}
        node_count: 2
        is_autoscaling: true
        autoscaling_min: 2
        autoscaling_max: 6
        labels:
          - {key: pool, value: batch}
  register: cluster

- name: Write the kubeconfig
  ansible.builtin.copy:
    content: "{{ cluster.resource.kubeconfig }}"
    dest: ~/.kube/prod
    mode: "0600"
"""

RETURN = r"""
resource:
  description: The normalized cluster record, including C(status), C(endpoint) and C(kubeconfig).
  returned: when the cluster exists
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

RUNNER_CONTEXT = {"resource_type": "k8s_cluster"}


def main():
    module = AnsibleModule(
        argument_spec=resource_argument_spec(RUNNER_CONTEXT["resource_type"]),
        supports_check_mode=True,
        required_one_of=[("id", "name")],
        mutually_exclusive=[("preset_id", "configuration")],
    )
    runner = CrudRunner(module, RUNNER_CONTEXT)
    runner.run()


if __name__ == "__main__":
    main()
