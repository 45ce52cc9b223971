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
Gas consumption estimation.

Gas consumption of a segment of a dive is calculated with surface air
consumption rate (SAC) at mean ambient pressure of the segment

    .. math::

        V = SAC * (P_{start} + P_{end}) / 2 * t

Bottom SAC is used for descent and bottom segments, decompression SAC is
used for ascent and decompression stops. Closed circuit rebreather loop
segments are not charged.

Gas reserve (rock bottom) of bottom cylinder is the volume of gas needed by
two stressed divers to solve a problem at the bottom and to share the gas
during the whole planned ascent, decompression stops included

    .. math::

        V_r = SAC * f * (t_p * P_{bottom} + \sum_i t_i * P_i)

where :math:`f` is SAC stress factor, :math:`t_p` is problem solving time,
:math:`t_i` and :math:`P_i` are time and mean ambient pressure of each
ascent segment.
"""

import logging
from collections import namedtuple

from .error import PlanWarning, WarningKind
from . import const

logger = logging.getLogger(__name__)

CylinderUse = namedtuple(
    'CylinderUse', 'cylinder gas start_pressure end_pressure volume'
)
CylinderUse.__doc__ = """
Projected gas usage of a cylinder.

:var cylinder: Cylinder index.
:var gas: Gas mix in the cylinder.
:var start_pressure: Cylinder pressure at the start of the dive [bar].
:var end_pressure: Projected cylinder pressure at the end of the dive
    [bar].
:var volume: Consumed volume of gas at surface pressure [l].
"""


class GasConsumption(object):
    """
    Gas consumption estimator.

    :var sac_bottom: Surface air consumption rate at the bottom [l/min].
    :var sac_deco: Surface air consumption rate during decompression
        [l/min].
    :var sac_factor: SAC stress factor used for gas reserve.
    :var problem_time: Problem solving time at the bottom [min].
    """
    def __init__(
            self, sac_bottom=const.SAC_BOTTOM, sac_deco=const.SAC_DECO,
            sac_factor=const.SAC_FACTOR,
            problem_time=const.PROBLEM_SOLVING_TIME):
        self.sac_bottom = sac_bottom
        self.sac_deco = sac_deco
        self.sac_factor = sac_factor
        self.problem_time = problem_time


    def volume(self, start_p, end_p, time, sac):
        """
        Calculate volume of gas [l] at surface pressure consumed at
        constant rate of pressure change.

        :param start_p: Absolute pressure at the start [bar].
        :param end_p: Absolute pressure at the end [bar].
        :param time: Duration [min].
        :param sac: Surface air consumption rate [l/min].
        """
        return sac * (start_p + end_p) / 2 * time


    def reserve(self, abs_p, ascent, to_pressure):
        """
        Calculate gas reserve [l] needed at absolute pressure of the bottom.

        :param abs_p: Absolute pressure of the bottom [bar].
        :param ascent: Dive plan segments of the ascent to the surface.
        :param to_pressure: Function converting depth [m] to absolute
            pressure [bar].
        """
        sac = self.sac_bottom * self.sac_factor
        v = sum(
            self.volume(
                to_pressure(s.start_depth), to_pressure(s.end_depth), s.time,
                sac
            )
            for s in ascent
        )
        return sac * self.problem_time * abs_p + v


    def estimate(self, segments, registry, to_pressure, bottom_kinds):
        """
        Estimate gas usage of dive plan segments.

        The cylinders of the registry are not modified. Tuple of list of
        cylinder usage projections and list of warnings is returned.

        :param segments: Dive plan segments.
        :param registry: Gas registry.
        :param to_pressure: Function converting depth [m] to absolute
            pressure [bar].
        :param bottom_kinds: Segment kinds consuming gas at bottom SAC.
        """
        cylinders = registry.copy()
        volumes = [0.0] * len(cylinders)
        warnings = []
        empty = set()

        bottom = [
            i for i, s in enumerate(segments) if s.kind in bottom_kinds
        ]
        reserve_at = bottom[-1] if bottom else None

        for i, s in enumerate(segments):
            if s.setpoint is None and s.time > 0:
                sac = self.sac_bottom if s.kind in bottom_kinds \
                    else self.sac_deco
                v = self.volume(
                    to_pressure(s.start_depth), to_pressure(s.end_depth),
                    s.time, sac
                )
                c = cylinders.cylinder(s.cylinder)
                volumes[s.cylinder] += v
                if c.consume(v) < 0 and s.cylinder not in empty:
                    empty.add(s.cylinder)
                    warnings.append(PlanWarning(
                        WarningKind.GAS_OVER_CAPACITY,
                        s.start_time + s.time, s.end_depth, s.gas,
                        'Not enough gas in cylinder {} ({})'
                        .format(s.cylinder, s.gas.name)
                    ))

            if i == reserve_at and s.setpoint is None:
                warnings.extend(self._check_reserve(
                    s, segments[i + 1:], cylinders, to_pressure
                ))

        result = [
            CylinderUse(k, c.gas, c.pressure, r.pressure, v)
            for k, (c, r, v) in enumerate(zip(registry, cylinders, volumes))
        ]
        if __debug__:
            logger.debug('gas usage {}'.format(result))
        return result, warnings


    def _check_reserve(self, segment, ascent, cylinders, to_pressure):
        """
        Verify the bottom cylinder holds gas reserve at the end of bottom
        segment.

        :param segment: Last bottom segment.
        :param ascent: Dive plan segments following the bottom segment.
        :param cylinders: Gas registry with cylinder pressures at the end of
            the bottom segment.
        :param to_pressure: Depth to absolute pressure conversion function.
        """
        depth = segment.end_depth
        c = cylinders.cylinder(segment.cylinder)
        reserve = self.reserve(to_pressure(depth), ascent, to_pressure)
        if c.capacity >= reserve:
            return []
        return [PlanWarning(
            WarningKind.GAS_RESERVE,
            segment.start_time + segment.time, depth, segment.gas,
            'Cylinder {} ({}) below gas reserve {:.0f}l'
            .format(segment.cylinder, segment.gas.name, reserve)
        )]


# vim: sw=4:et:ai
