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
Tissue Model
------------
DecoPlanner simulates inert gas loading of human body with Buhlmann
ZH-L16 decompression model. The body is described as 16 tissue
compartments and each compartment tracks pressure of nitrogen and helium
independently. For each inert gas a compartment has

A, B
    Buhlmann coefficients used to calculate tolerated ambient pressure.
half life
    Half-life time of the inert gas in the compartment [min].

Two coefficient sets are provided

ZH-L16B
    used for dive planning (default)
ZH-L16C
    more conservative, used by dive computers

Schreiner Equation
^^^^^^^^^^^^^^^^^^
Pressure of inert gas in a compartment after time of exposure :math:`t` is

    .. math::

        P = P_{alv} + R * (t - 1 / k) - (P_{alv} - P_{i} - R / k) * e^{-k * t}

where :math:`P_{alv} = F_{gas} * (P_{abs} - P_{wvp})` is inspired inert gas
pressure, :math:`R = F_{gas} * P_{rate}` is rate of its change,
:math:`k = ln(2) / T_{hl}` is gas decay constant and :math:`P_{i}` is
initial pressure of the inert gas in the compartment.

For closed circuit rebreather the oxygen pressure is kept at setpoint, so
inspired inert gas pressure is :math:`P_{alv} = F_{gas} * (P_{abs} -
P_{wvp} - P_{sp})` with :math:`F_{gas}` being fraction of the inert gas
within inert part of diluent.

Example, nitrogen pressure in the first compartment during a dive on EAN32
with descent to 30m, 20 minutes at 30m and ascent to 10m (surface pressure
is 1 bar, 10m of depth is 1 bar)::

    >>> from decoplanner.gas import GasMix
    >>> model = ZH_L16B()
    >>> ean32 = GasMix(0.32)
    >>> state = model.init(1)
    >>> state = model.advance(1, 1.5, ean32, 2, state)
    >>> round(state.tissues[0][0], 6)
    0.919397
    >>> state = model.advance(4, 20, ean32, 0, state)
    >>> round(state.tissues[0][0], 6)
    2.567491
    >>> state = model.advance(4, 2, ean32, -1, state)
    >>> round(state.tissues[0][0], 5)
    2.42184

Gradient Factors
----------------
Ascent ceiling of a compartment is calculated with Buhlmann equation
extended with gradient factors by Erik Baker

    .. math::

        P_l = (P - A * gf) / (gf / B + 1.0 - gf)

For trimix the coefficients are weighted by nitrogen and helium pressure

    .. math::

        P = P_{n2} + P_{he}

        A = (A_{n2} * P_{n2} + A_{he} * P_{he}) / P

        B = (B_{n2} * P_{n2} + B_{he} * P_{he}) / P

The gradient factor is *gf low* until first decompression stop is found.
Then it changes linearly with pressure from *gf low* at the first stop to
*gf high* at the surface. The ceiling is the highest limit of all
compartments.

References
----------
* Baker, Erik. Understanding M-values.
* Baker, Erik. Clearing Up The Confusion About "Deep Stops".
* Powell, Mark. *Deco for Divers*, United Kingdom, 2010.
"""

from collections import namedtuple
import math
import logging

from .error import ConfigError, EngineError
from . import const
from .flow import coroutine

logger = logging.getLogger(__name__)

TissueState = namedtuple('TissueState', 'tissues crushing')
TissueState.__doc__ = """
Inert gas loading of tissue compartments.

:var tissues: Tuple of pairs, each pair holds pressure of nitrogen and
    helium in a tissue compartment.
:var crushing: Maximum crushing pressure of bubble nuclei in each tissue
    compartment.
"""


def eq_gf_limit(gf, p_n2, p_he, a_n2, b_n2, a_he, b_he):
    """
    Calculate ascent ceiling limit of a tissue compartment using Buhlmann
    equation extended with gradient factors by Erik Baker.

    The returned value is absolute pressure of depth of the ascent ceiling.

    :param gf: Gradient factor value.
    :param p_n2: Current tissue pressure for nitrogen.
    :param p_he: Current tissue pressure for helium.
    :param a_n2: Nitrox Buhlmann coefficient A.
    :param b_n2: Nitrox Buhlmann coefficient B.
    :param a_he: Helium Buhlmann coefficient A.
    :param b_he: Helium Buhlmann coefficient B.
    """
    assert gf > 0 and gf <= 1.5
    p = p_n2 + p_he
    if p <= 0:
        return 0.0
    a = (a_n2 * p_n2 + a_he * p_he) / p
    b = (b_n2 * p_n2 + b_he * p_he) / p
    return (p - a * gf) / (gf / b + 1 - gf)



class ZH_L16(object):
    """
    Base class for Buhlmann ZH-L16 tissue model.

    :var water_vapour_pressure: Water vapour pressure.
    :var n2_k_const: Gas decay constants :math:`k` for nitrogen for each
        tissue compartment.
    :var he_k_const: Gas decay constants :math:`k` for helium for each
        tissue compartment.
    """
    NUM_COMPARTMENTS = 16
    N2_A = None
    N2_B = None
    HE_A = None
    HE_B = None
    N2_HALF_LIFE = None
    HE_HALF_LIFE = None
    START_P_N2 = 0.7902 # starting pressure of N2 in tissues
    START_P_HE = 0.0    # starting pressure of He in tissues

    def __init__(self):
        super().__init__()
        self.n2_k_const = self._k_const(self.N2_HALF_LIFE)
        self.he_k_const = self._k_const(self.HE_HALF_LIFE)
        self.water_vapour_pressure = const.WATER_VAPOUR_PRESSURE_DEFAULT


    def init(self, surface_pressure):
        """
        Create tissue state in equilibrium with air at the surface.

        :param surface_pressure: Surface pressure [bar].
        """
        p_n2 = self.START_P_N2 * (surface_pressure - self.water_vapour_pressure)
        p_he = self.START_P_HE
        n = self.NUM_COMPARTMENTS
        return TissueState(((p_n2, p_he),) * n, (0.0,) * n)


    def advance(self, abs_p, time, gas, rate, state, setpoint=None):
        """
        Calculate inert gas loading of all tissue compartments after
        exposure.

        :param abs_p: Absolute pressure at the start of exposure [bar].
        :param time: Time of exposure [min].
        :param gas: Gas mix configuration.
        :param rate: Pressure rate change [bar/min].
        :param state: Tissue state at the start of exposure.
        :param setpoint: CCR setpoint [bar] or null for open circuit.
        """
        if time <= 0:
            raise EngineError(
                'Time of exposure has to be positive, got {}'.format(time)
            )
        total = gas.o2 + gas.he + gas.n2
        if abs(total - 1) > const.GAS_FRACTION_TOLERANCE:
            raise EngineError('Malformed gas mix {}'.format(gas))

        n2_loader, he_loader = self._tissue_loaders(abs_p, gas, rate, setpoint)
        tissues = tuple(
            (n2_loader(time, p_n2, i), he_loader(time, p_he, i))
            for i, (p_n2, p_he) in enumerate(state.tissues)
        )

        # crushing pressure is the gradient between ambient pressure and
        # gas tension in a compartment
        end_p = abs_p + rate * time
        onset = const.GRADIENT_ONSET_OF_IMPERMEABILITY
        other = const.PRESSURE_OTHER_GASES
        crushing = tuple(
            max(c, min(end_p - p_n2 - p_he - other, onset))
            for c, (p_n2, p_he) in zip(state.crushing, tissues)
        )
        return TissueState(tissues, crushing)


    def _k_const(self, half_life):
        """
        Calculate gas decay constant :math:`k` for each tissue compartment
        half-life value.

        :param half_life: Collection of half-life values for each tissue
            compartment.
        """
        return tuple(const.LOG_2 / v for v in half_life)


    def _tissue_loaders(self, abs_p, gas, rate, setpoint=None):
        """
        Create functions to load tissue compartments with nitrogen and
        helium.

        :param abs_p: Absolute pressure of current depth [bar].
        :param gas: Gas mix configuration.
        :param rate: Pressure rate change [bar/min].
        :param setpoint: CCR setpoint [bar] or null for open circuit.
        """
        if setpoint is None:
            offset = 0
            f_n2, f_he = gas.n2, gas.he
        else:
            offset = min(setpoint, abs_p - self.water_vapour_pressure)
            if offset < setpoint:
                # loop is pure oxygen, inert gas pressure does not change
                rate = 0
            inert = gas.inert
            f_n2 = gas.n2 / inert if inert > 0 else 0.0
            f_he = gas.he / inert if inert > 0 else 0.0

        n2_loader = self._tissue_loader(
            abs_p, f_n2, rate, self.n2_k_const, offset
        )
        he_loader = self._tissue_loader(
            abs_p, f_he, rate, self.he_k_const, offset
        )
        return n2_loader, he_loader


    def _tissue_loader(self, abs_p, f_gas, rate, k_const, offset=0):
        """
        Create function to load tissue compartment with inert gas.

        The created function uses Schreiner equation and has the following
        parameters

        time
            Time of exposure [min] at depth (:math:`T_{time}`).
        p_i
            Initial (current) pressure of inert gas in tissue compartment
            [bar] (:math:`P_{i}`).
        tissue_no
            Number of tissue compartment in the decompression model
            (starting with zero).

        :param abs_p: Absolute pressure of current depth [bar] (:math:`P_{abs}`).
        :param f_gas: Inert gas fraction, i.e. for air it is 0.79 (:math:`F_{gas}`).
        :param rate: Pressure rate change [bar/min] (:math:`P_{rate}`).
        :param k_const: Collection of gas decay constants for each tissue
            compartment (:math:`k`).
        :param offset: Pressure of oxygen kept constant by CCR [bar].
        """
        p_alv = f_gas * (abs_p - self.water_vapour_pressure - offset)
        r = f_gas * rate
        def f(time, p_i, tissue_no):
            k = k_const[tissue_no]
            return p_alv + r * (time - 1 / k) - (p_alv - p_i - r / k) \
                * math.exp(-k * time)
        return f



class ZH_L16B(ZH_L16): # source: gfdeco.f by Baker
    """
    ZH-L16B tissue model.
    """
    N2_A = (
        1.1696, 1.0000, 0.8618, 0.7562, 0.6667, 0.5600, 0.4947, 0.4500,
        0.4187, 0.3798, 0.3497, 0.3223, 0.2850, 0.2737, 0.2523, 0.2327,
    )
    N2_B = (
        0.5578, 0.6514, 0.7222, 0.7825, 0.8126, 0.8434, 0.8693, 0.8910,
        0.9092, 0.9222, 0.9319, 0.9403, 0.9477, 0.9544, 0.9602, 0.9653,
    )
    HE_A = (
        1.6189, 1.3830, 1.1919, 1.0458, 0.9220, 0.8205, 0.7305, 0.6502,
        0.5950, 0.5545, 0.5333, 0.5189, 0.5181, 0.5176, 0.5172, 0.5119,
    )
    HE_B = (
        0.4770, 0.5747, 0.6527, 0.7223, 0.7582, 0.7957, 0.8279, 0.8553,
        0.8757, 0.8903, 0.8997, 0.9073, 0.9122, 0.9171, 0.9217, 0.9267,
    )
    N2_HALF_LIFE = (
        5.0, 8.0, 12.5, 18.5, 27.0, 38.3, 54.3, 77.0, 109.0,
        146.0, 187.0, 239.0, 305.0, 390.0, 498.0, 635.0,
    )
    HE_HALF_LIFE = (
        1.88, 3.02, 4.72, 6.99, 10.21, 14.48, 20.53, 29.11,
        41.20, 55.19, 70.69, 90.34, 115.29, 147.42, 188.24, 240.03,
    )



class ZH_L16C(ZH_L16): # source: ostc firmware code
    """
    ZH-L16C tissue model.
    """
    N2_A = (
        1.2599, 1.0000, 0.8618, 0.7562, 0.6200, 0.5043, 0.4410, 0.4000,
        0.3750, 0.3500, 0.3295, 0.3065, 0.2835, 0.2610, 0.2480, 0.2327,
    )
    N2_B = (
        0.5050, 0.6514, 0.7222, 0.7825, 0.8126, 0.8434, 0.8693, 0.8910,
        0.9092, 0.9222, 0.9319, 0.9403, 0.9477, 0.9544, 0.9602, 0.9653,
    )
    HE_A = (
        1.7424, 1.3830, 1.1919, 1.0458, 0.9220, 0.8205, 0.7305, 0.6502,
        0.5950, 0.5545, 0.5333, 0.5189, 0.5181, 0.5176, 0.5172, 0.5119,
    )
    HE_B = (
        0.4245, 0.5747, 0.6527, 0.7223, 0.7582, 0.7957, 0.8279, 0.8553,
        0.8757, 0.8903, 0.8997, 0.9073, 0.9122, 0.9171, 0.9217, 0.9267,
    )
    N2_HALF_LIFE = (
        4.0, 8.0, 12.5, 18.5, 27.0, 38.3, 54.3, 77.0, 109.0,
        146.0, 187.0, 239.0, 305.0, 390.0, 498.0, 635.0,
    )
    HE_HALF_LIFE = (
        1.51, 3.02, 4.72, 6.99, 10.21, 14.48, 20.53, 29.11, 41.20,
        55.19, 70.69, 90.34, 115.29, 147.42, 188.24, 240.03,
    )



class GradientFactor(object):
    """
    Ascent ceiling strategy using Buhlmann model with gradient factors.

    Gradient factor changes linearly with pressure from *gf low* at an
    anchor to *gf high* at the surface. The anchor is the maximum depth
    reached during a dive. When `gf_low_at_maxdepth` is false, then the
    anchor is the first decompression stop (Baker) and no decompression
    ascent is verified with *gf high*.

    :var gf_low: Gradient factor low parameter.
    :var gf_high: Gradient factor high parameter.
    :var gf_low_at_maxdepth: Anchor *gf low* at maximum depth if true.
    :var model: Tissue model, set when plan calculation starts.
    :var surface_pressure: Surface pressure [bar].
    """
    def __init__(self, gf_low=0.3, gf_high=0.85, gf_low_at_maxdepth=True):
        self.gf_low = gf_low
        self.gf_high = gf_high
        self.gf_low_at_maxdepth = gf_low_at_maxdepth
        self.model = None
        self.surface_pressure = const.SURFACE_PRESSURE
        self._first_stop = None
        self._max_p = None


    def reset(self, model, surface_pressure):
        """
        Prepare the strategy for new plan calculation.

        :param model: Tissue model.
        :param surface_pressure: Surface pressure [bar].
        """
        self.model = model
        self.surface_pressure = surface_pressure
        self._first_stop = None
        self._max_p = None


    def validate(self):
        if not 0 < self.gf_low <= self.gf_high <= 1.5:
            raise ConfigError(
                'Invalid gradient factors {}/{}'
                .format(self.gf_low, self.gf_high)
            )


    def start_ascent(self, step):
        """
        Forget first decompression stop when new ascent starts.

        An ascent starts at the deepest point since previous ascent, so
        maximum pressure of a dive is tracked here.

        :param step: Dive step at the start of the ascent.
        """
        self._first_stop = None
        if self._max_p is None or step.abs_p > self._max_p:
            self._max_p = step.abs_p


    def first_stop(self, abs_p):
        """
        Anchor gradient factor slope at first decompression stop.

        If the anchor is at the surface, then the ascent is no
        decompression ascent and *gf high* is used. The anchor is ignored
        when *gf low* is anchored at maximum depth.

        :param abs_p: Absolute pressure of first decompression stop or
            null to clear the anchor.
        """
        self._first_stop = abs_p
        if __debug__:
            logger.debug('gf slope anchored at {}bar'.format(abs_p))


    def end_ascent(self, steps):
        """
        Gradient factor schedule is calculated in one pass.
        """
        return True


    def gf(self, abs_p=None):
        """
        Calculate gradient factor value at absolute pressure.

        :param abs_p: Absolute pressure [bar].
        """
        anchor = self._max_p if self.gf_low_at_maxdepth else self._first_stop
        surface = self.surface_pressure
        if anchor is None:
            return self.gf_low
        if anchor - surface < const.EPSILON:
            return self.gf_high
        if abs_p is None or abs_p >= anchor:
            return self.gf_low
        k = max(abs_p - surface, 0) / (anchor - surface)
        return self.gf_high + (self.gf_low - self.gf_high) * k


    def compute_ceiling(self, state, abs_p=None):
        """
        Calculate pressure of ascent ceiling.

        The most restrictive tissue compartment determines the ceiling. The
        ceiling is never above the surface.

        :param state: Tissue state.
        :param abs_p: Absolute pressure of current depth, used to determine
            gradient factor value.
        """
        limit = max(self.gf_limit(self.gf(abs_p), state))
        return max(limit, self.surface_pressure)


    def gf_limit(self, gf, state):
        """
        Calculate pressure of ascent ceiling for each tissue compartment.

        :param gf: Gradient factor.
        :param state: Tissue state.
        """
        model = self.model
        data = zip(state.tissues, model.N2_A, model.N2_B, model.HE_A, model.HE_B)
        return tuple(
            eq_gf_limit(gf, p_n2, p_he, n2_a, n2_b, he_a, he_b)
            for (p_n2, p_he), n2_a, n2_b, he_a, he_b in data
        )



class CeilingValidator(object):
    """
    Dive step validator (coroutine class).

    Create coroutine object, then call it to start the coroutine.

    :var engine: Decompression engine.
    """
    def __init__(self, engine):
        """
        Create coroutine object.

        :param engine: Decompression engine.
        """
        self.engine = engine


    @coroutine
    def __call__(self):
        """
        Start the coroutine.
        """
        logger.info('started ceiling validator')
        prev = None
        while True:
            step = yield
            self._ceiling_limit(step)
            self._time(prev, step)
            prev = step


    def _ceiling_limit(self, step):
        """
        Verify that a dive step is deeper than a pressure ceiling limit.

        :param step: Dive step to verify.
        """
        strategy = self.engine.strategy
        limit = strategy.compute_ceiling(step.data, step.abs_p)
        if step.abs_p < limit - const.EPSILON:
            raise EngineError(
                'Pressure ceiling validation error at {} (limit={})'
                .format(step, limit)
            )
        if step.abs_p < self.engine.surface_pressure - const.EPSILON:
            raise EngineError('Dive step above the surface {}'.format(step))


    def _time(self, prev, step):
        """
        Verify that time of a dive does not go back.

        :param prev: Previous dive step.
        :param step: Dive step to verify.
        """
        if prev is not None and step.time < prev.time:
            raise EngineError(
                'Dive step {} earlier than previous step {}'.format(step, prev)
            )


# vim: sw=4:et:ai
