#
# DecoPlanner - dive decompression planning engine.
#
# Copyright (C) 2013-2014 by Artur Wroblewski <wrobell@pld-linux.org>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
#

"""
Basic Usage
-----------

The DecoPlanner dive decompression planning library exports its main API
via ``decoplanner`` module.

The calculation of dive plan can be performed in few simple steps by using
:func:`~decoplanner.create` function, which creates :class:`DecoPlanner
engine <Engine>` object. Having the engine object, we need to add
cylinders with gas mixes, after which we can calculate plan for a list of
waypoints. The following example executes calculations for a dive to 40
meters for 30 minutes on air::

    >>> import decoplanner
    >>> engine = decoplanner.create()
    >>> engine.add_gas(0.21)
    0
    >>> plan = engine.calculate([(40, 30)])
    >>> plan.deco_table.total > 0
    True

Each waypoint is a tuple of depth, duration (including transition from
previous depth), cylinder index and CCR setpoint.

The plan contains list of segments, oxygen exposure, gas usage and
warnings, which can be rendered as text::

    >>> text = decoplanner.render(
    ...     plan.segments, plan.exposure, plan.warnings, plan.cylinders
    ... )
    >>> text.splitlines()[0]
    'Transition to 40m at rate 20m/min - runtime 2:00 on Air'

Configuring Ascent Ceiling Strategy
-----------------------------------
The default strategy is Buhlmann ZH-L16B model with gradient factors::

    >>> engine.strategy.gf_low, engine.strategy.gf_high
    (0.3, 0.85)

VPM-B strategy can be used instead::

    >>> engine = decoplanner.create('vpmb')
    >>> engine.strategy.conservatism
    2
"""

from .engine import Engine, Waypoint, SegmentKind, State, Plan, DecoTable
from .model import ZH_L16B, ZH_L16C, GradientFactor, CeilingValidator
from .vpmb import VPMB
from .budget import Budget, CancelToken
from .error import ConfigError, EngineError, CalculationAborted, WarningKind
from .output import render, profile

__version__ = '0.1.0'


def create(strategy='gf', time_delta=None, validate=True):
    """
    Create decompression engine.

    The ceiling validation is enabled by default.

    Usage

    >>> import decoplanner
    >>> engine = decoplanner.create()
    >>> engine.add_gas(0.21)
    0
    >>> plan = engine.calculate([(18, 20)])
    >>> plan.deco_table.total
    0

    :param strategy: Ascent ceiling strategy, `gf` for gradient factors or
        `vpmb` for VPM-B.
    :param time_delta: Time of simulation step [min].
    :param validate: Validate dive steps with ceiling validator.
    """
    engine = Engine()

    if strategy == 'gf':
        engine.strategy = GradientFactor()
    elif strategy == 'vpmb':
        engine.strategy = VPMB()
    else:
        raise ConfigError('Unknown ascent ceiling strategy {}'.format(strategy))

    if time_delta:
        engine.time_delta = time_delta
    if validate:
        engine.pipeline.append(CeilingValidator(engine))

    return engine


__all__ = [
    'create', 'Engine', 'Waypoint', 'SegmentKind', 'State', 'Plan',
    'DecoTable', 'ZH_L16B', 'ZH_L16C', 'GradientFactor', 'VPMB', 'Budget',
    'CancelToken', 'ConfigError', 'EngineError', 'CalculationAborted',
    'WarningKind', 'render', 'profile',
]

# vim: sw=4:et:ai
