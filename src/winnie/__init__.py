"""
Winnie - command-line client for the Winnie Cloud hosting platform.

Create, inspect, start, stop, redeploy and delete clouds, and manage the
organizations, backups and collaborators they belong to.
"""

__version__ = "1.0.0"
__author__ = "Winnie Cloud Team"
__email__ = "support@winniecloud.com"
__description__ = "Command-line client for the Winnie Cloud hosting platform"
