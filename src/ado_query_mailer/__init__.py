"""ado-query-mailer: Email the results of a saved Azure DevOps work item query."""

__version__ = "0.1.0"

import pathlib

PACKAGE_DIR = pathlib.Path(__file__).parent
