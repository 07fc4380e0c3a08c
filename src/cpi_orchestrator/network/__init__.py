"""
Network package.

This makes the network folder an explicit package so both Python and mypy
resolve modules consistently.
"""

from cpi_orchestrator.network.provisioner import SubnetProvisioner
from cpi_orchestrator.network.validation import build_subnet

__all__ = ["SubnetProvisioner", "build_subnet"]
