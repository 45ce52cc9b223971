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
DecoPlanner constants.

Pressure is expressed in bars, depth in meters, time in minutes and volume
in liters unless stated otherwise.
"""

import math

#: Surface pressure at sea level [bar].
SURFACE_PRESSURE = 1.01325

#: Water density [kg/l] of salt water.
SALINITY_SEA = 1.03
#: Water density [kg/l] of fresh water.
SALINITY_FRESH = 1.0
#: Standard gravity [m/s^2].
GRAVITY = 9.80665

#: Depth to pressure conversion factor for salt water [bar/m].
METER_TO_BAR = SALINITY_SEA * GRAVITY / 100

#: Water vapour pressure used by Buhlmann decompression model [bar].
WATER_VAPOUR_PRESSURE_DEFAULT = 0.0627

#: Pressure of other gases (O2, CO2) in tissues used by VPM-B model [bar].
PRESSURE_OTHER_GASES = 102 / 760 * 1.01325

#: Gradient onset of impermeability of bubble nuclei [bar].
GRADIENT_ONSET_OF_IMPERMEABILITY = 8.2 * 1.01325

#: Natural logarithm of 2.
LOG_2 = math.log(2)

EPSILON = 10 ** -10
SCALE = 10

#: One minute.
MINUTE = 1

#: Default time step of the stop scheduler [min], one second.
TIME_DELTA = 1 / 60

#: Tolerance of gas mix fractions sum.
GAS_FRACTION_TOLERANCE = 1e-6

#: Maximum number of gas mixes considered for gas switches.
MAX_GAS_MIXES = 10

DESCENT_RATE = 20.0
#: Ascent rate bands, rate [m/min] is used when deeper than band depth [m].
ASCENT_RATES = ((6.0, 10.0), (0.0, 3.0))

STOP_INTERVAL = 3
LAST_STOP = 3
#: Granularity of decompression stop time [min].
STOP_TIME = MINUTE

SAFETY_STOP_DEPTH = 5
SAFETY_STOP_TIME = 3
SAFETY_STOP_MIN_DEPTH = 10

MAX_PO2 = 1.4
MAX_PO2_DECO = 1.6
MIN_PO2 = 0.16

#: CNS and OTU single dive limits.
CNS_LIMIT = 100.0
OTU_LIMIT = 850.0

SAC_BOTTOM = 20.0
SAC_DECO = 17.0
SAC_FACTOR = 4.0
PROBLEM_SOLVING_TIME = 4

CYLINDER_SIZE = 12.0
CYLINDER_PRESSURE = 232.0

#: Maximum amount of simulated steps of a plan calculation.
MAX_ITERATIONS = 100000
#: Maximum wall-clock time of a plan calculation [s].
MAX_TIME = 30.0

#: Maximum amount of VPM-B critical volume algorithm passes.
VPM_MAX_PASSES = 20

# vim: sw=4:et:ai
