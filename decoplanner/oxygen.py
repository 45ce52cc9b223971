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
Oxygen toxicity exposure tracking.

Central nervous system (CNS) oxygen toxicity is accumulated as percentage
of NOAA single exposure time limits. The limit for a partial pressure of
oxygen is approximated with linear equation :math:`t = m * pO_2 + b` within
each band of NOAA table

    ========= ======== ========
     pO2 bar     m        b
    --------- -------- --------
     0.5-0.6    -1800     1800
     0.6-0.7    -1500     1620
     0.7-0.8    -1200     1410
     0.8-0.9     -900     1170
     0.9-1.1     -600      900
     1.1-1.5     -300      570
     1.5-1.6     -750     1245
    ========= ======== ========

Pulmonary toxicity is measured with oxygen tolerance units (OTU)

    .. math::

        OTU = t * ((pO_2 - 0.5) / 0.5)^{0.83}

Both values are accumulated only above 0.5 bar of oxygen partial pressure.
"""

import logging
from collections import namedtuple

from .error import PlanWarning, WarningKind
from .flow import coroutine
from . import const

logger = logging.getLogger(__name__)

# (low pO2, high pO2, m, b)
CNS_TABLE = (
    (0.5, 0.6, -1800, 1800),
    (0.6, 0.7, -1500, 1620),
    (0.7, 0.8, -1200, 1410),
    (0.8, 0.9, -900, 1170),
    (0.9, 1.1, -600, 900),
    (1.1, 1.5, -300, 570),
    (1.5, 1.6, -750, 1245),
)
CNS_MIN_TIME = 1.0 # exposure limit floor above NOAA table [min]

Exposure = namedtuple('Exposure', 'cns otu')
Exposure.__doc__ = """
Oxygen toxicity exposure.

:var cns: CNS oxygen toxicity [%].
:var otu: Pulmonary oxygen toxicity units.
"""

NO_EXPOSURE = Exposure(0.0, 0.0)


def cns_limit(po2):
    """
    Calculate single exposure time limit [min] for partial pressure of
    oxygen.

    Null is returned for pO2 at or below 0.5 bar. Above 1.6 bar the last
    band of the table is extrapolated.

    :param po2: Partial pressure of oxygen [bar].
    """
    if po2 <= 0.5:
        return None
    for lo, hi, m, b in CNS_TABLE:
        if po2 <= hi:
            return m * po2 + b
    lo, hi, m, b = CNS_TABLE[-1]
    return max(m * po2 + b, CNS_MIN_TIME)


def cns(po2, time):
    """
    Calculate CNS oxygen toxicity [%] of an exposure.

    :param po2: Partial pressure of oxygen [bar].
    :param time: Time of exposure [min].
    """
    limit = cns_limit(po2)
    return 0.0 if limit is None else time / limit * 100


def otu(po2, time):
    """
    Calculate oxygen tolerance units of an exposure.

    :param po2: Partial pressure of oxygen [bar].
    :param time: Time of exposure [min].
    """
    if po2 <= 0.5:
        return 0.0
    return time * ((po2 - 0.5) / 0.5) ** 0.83


def accumulate(exposure, po2, time):
    """
    Accumulate oxygen toxicity exposure.

    :param exposure: Current exposure.
    :param po2: Partial pressure of oxygen [bar].
    :param time: Time of exposure [min].
    """
    assert time >= 0
    return Exposure(exposure.cns + cns(po2, time), exposure.otu + otu(po2, time))



class ExposureMonitor(object):
    """
    Oxygen exposure monitor (coroutine class).

    The monitor receives dive steps and appends a warning to warning list
    when partial pressure of oxygen goes out of limits, or when CNS or OTU
    limit is exceeded. Warning is issued once per excursion.

    :var engine: Decompression engine.
    :var warnings: List of warnings.
    """
    def __init__(self, engine, warnings):
        """
        Create coroutine object.

        :param engine: Decompression engine.
        :param warnings: List of warnings to append to.
        """
        self.engine = engine
        self.warnings = warnings


    @coroutine
    def __call__(self):
        """
        Start the coroutine.
        """
        active = set()
        while True:
            step = yield
            po2 = step.gas.partial_pressures(step.abs_p, step.setpoint)[0]
            min_po2, max_po2 = self.engine._po2_limits(step)
            checks = (
                (WarningKind.PO2_HIGH, po2 > max_po2 + const.EPSILON,
                    'pO2 {:.2f}bar above {:.2f}bar'.format(po2, max_po2)),
                (WarningKind.PO2_LOW, po2 < min_po2 - const.EPSILON,
                    'pO2 {:.2f}bar below {:.2f}bar'.format(po2, min_po2)),
                (WarningKind.CNS_LIMIT, step.exposure.cns > const.CNS_LIMIT,
                    'CNS {:.0f}%'.format(step.exposure.cns)),
                (WarningKind.OTU_LIMIT, step.exposure.otu > const.OTU_LIMIT,
                    'OTU {:.0f}'.format(step.exposure.otu)),
            )
            for kind, exceeded, message in checks:
                if exceeded and kind not in active:
                    self._warn(kind, step, message)
                    active.add(kind)
                elif not exceeded:
                    active.discard(kind)


    def _warn(self, kind, step, message):
        depth = self.engine._to_depth(step.abs_p)
        w = PlanWarning(kind, step.time, depth, step.gas, message)
        self.warnings.append(w)
        if __debug__:
            logger.debug('exposure warning {}'.format(w))


# vim: sw=4:et:ai
