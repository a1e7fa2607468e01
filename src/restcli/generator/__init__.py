"""Command generation -- turn loaded operations into Click commands.

Sub-modules:

* :mod:`~restcli.generator.param_mapper` -- Map operation parameters to
  Click arguments and ``--option`` flags with matching types.
* :mod:`~restcli.generator.command_slot` -- :class:`CommandSlot`, the
  registration target the description loader fills, and
  :class:`OperationCall`, what a generated command hands to its runner.
"""

from restcli.generator.command_slot import (
    CommandSlot,
    OperationCall,
    OperationRunner,
    expand_path,
)
from restcli.generator.param_mapper import ParamMapper, click_type_for, sanitize_param_name

__all__ = [
    "CommandSlot",
    "OperationCall",
    "OperationRunner",
    "expand_path",
    "ParamMapper",
    "click_type_for",
    "sanitize_param_name",
]
