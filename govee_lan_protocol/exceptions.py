#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

class GoveeLanError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass
