# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package version for ssdp_discovery
"""

# The following line is automatically updated with "semantic-release version"
__version__ =  "1.0.0"


__all__ = [ '__version__' ]
