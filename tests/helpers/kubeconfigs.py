"""Kubeconfig documents shared across tests."""
from __future__ import annotations

FIXTURE_YAML = """\
apiVersion: v1
kind: Config
current-context: ctx-1
clusters:
  - name: cluster-a
    cluster:
      server: https://127.0.0.1:6443
  - name: cluster-b
    cluster:
      server: https://10.0.0.2:6443
users:
  - name: user-a
    user:
      token: token-a
  - name: user-b
    user:
      token: token-b
contexts:
  - name: ctx-1
    context:
      cluster: cluster-a
      user: user-a
  - name: ctx-2
    context:
      cluster: cluster-b
      user: user-b
"""

CASCADE_YAML = """\
apiVersion: v1
kind: Config
current-context: ctx-shared
clusters:
  - name: cluster-only
    cluster:
      server: https://cluster-only:6443
  - name: cluster-shared
    cluster:
      server: https://cluster-shared:6443
users:
  - name: user-only
    user:
      token: user-only-token
  - name: user-shared
    user:
      token: user-shared-token
contexts:
  - name: ctx-only
    context:
      cluster: cluster-only
      user: user-only
  - name: ctx-shared
    context:
      cluster: cluster-shared
      user: user-shared
  - name: ctx-shared-2
    context:
      cluster: cluster-shared
      user: user-shared
"""

INVALID_REFS_YAML = """\
apiVersion: v1
kind: Config
current-context: ctx-z
clusters:
  - name: cluster-z
    cluster:
      server: ""
users:
  - name: user-z
    user: {}
contexts:
  - name: ctx-z
    context:
      cluster: missing-cluster
      user: missing-user
"""

MERGE_TARGET_YAML = """\
apiVersion: v1
kind: Config
current-context: dev
clusters:
  - name: dev-cluster
    cluster:
      server: https://a:1
users:
  - name: dev-user
    user:
      token: old-token
contexts:
  - name: dev
    context:
      cluster: dev-cluster
      user: dev-user
      namespace: default
"""

MERGE_SOURCE_YAML = """\
apiVersion: v1
kind: Config
current-context: prod
clusters:
  - name: prod-cluster
    cluster:
      server: https://a:2
users:
  - name: prod-user
    user:
      token: new-token
contexts:
  - name: prod
    context:
      cluster: prod-cluster
      user: prod-user
      namespace: default
"""
