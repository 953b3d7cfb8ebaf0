"""
Tools for running administrative commands against a jenkins master and for
managing its build agents.
"""

from .jenkinsmachines_version import JENKINSMACHINES_VERSION
