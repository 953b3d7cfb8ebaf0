"""
The version of the JenkinsMachines package.
Config files must carry the same version string.
"""

JENKINSMACHINES_VERSION = '1.0.0'
