"""
cpi_orchestrator

This package is the provisioning core of a cloud provider interface plugin.

We keep modules small and well separated:
core contains shared data structures, errors, config and logging
network contains subnet validation and the subnet provisioning saga
transfer contains the retryer, service tickets, host selection and file transfer
inventory contains the read only datastore inventory
runtime wires everything together for the CPI command handlers
"""
