"""Provision a Kubermatic project, user cluster, machines, and workload in dependency order."""
