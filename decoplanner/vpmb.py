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
Varying Permeability Model with Boyle's law compensation (VPM-B).

VPM-B models bubble nuclei in each tissue compartment. The nuclei are
crushed during descent, which reduces their radius and allows larger
supersaturation gradient during ascent. The model calculates

#. Crushing pressure of nuclei - tracked by tissue model as maximum
   gradient between ambient pressure and gas tension in a compartment.
#. Regeneration of nuclei radius over the dive time.
#. Initial allowable gradient for nitrogen and helium.
#. New allowable gradients with critical volume algorithm. The algorithm
   repeats decompression schedule calculation until total phase volume
   time of two consecutive schedules differs by at most one minute.
#. Boyle's law compensation of allowable gradient at depths shallower than
   first decompression stop.

Conservatism level from 0 to 5 increases critical radius of nuclei, which
decreases allowable gradients.

Tolerated ambient pressure of a compartment is

    .. math::

        P_{tol} = P_{n2} + P_{he} + P_{other} - G

where :math:`G` is allowable gradient weighted by nitrogen and helium
pressure.

References
----------
* Baker, Erik. VPM-B Fortran source code.
* Yount, David. Varying Permeability Model.
"""

import logging
import math

from .error import ConfigError
from . import const

logger = logging.getLogger(__name__)


def cubic_root(b, c):
    """
    Find the largest real root of equation :math:`x^3 - b * x - c = 0`.

    :param b: Equation coefficient.
    :param c: Equation coefficient.
    """
    delta = c ** 2 / 4 - b ** 3 / 27
    if delta >= 0:
        s = math.sqrt(delta)
        cbrt = lambda v: math.copysign(abs(v) ** (1 / 3), v)
        return cbrt(c / 2 + s) + cbrt(c / 2 - s)

    # three real roots, b > 0 here
    v = 3 * c / (2 * b) * math.sqrt(3 / b)
    v = max(-1.0, min(1.0, v))
    return 2 * math.sqrt(b / 3) * math.cos(math.acos(v) / 3)



class VPMB(object):
    """
    Ascent ceiling strategy using VPM-B decompression model.

    :var conservatism: Conservatism level (0-5).
    :var critical_volume: Use critical volume algorithm if true.
    :var model: Tissue model, set when plan calculation starts.
    :var surface_pressure: Surface pressure [bar].
    """
    SURFACE_TENSION = 0.179          # [bar * um]
    SKIN_COMPRESSION = 2.57          # [bar * um]
    CRITICAL_VOLUME_LAMBDA = 199.58  # [bar * min]
    REGENERATION_TIME = 20160.0      # [min]
    N2_RADIUS = 0.55                 # [um]
    HE_RADIUS = 0.45                 # [um]
    CONSERVATISM = (1.0, 1.05, 1.12, 1.22, 1.35, 1.5)

    def __init__(self, conservatism=2, critical_volume=True):
        self.conservatism = conservatism
        self.critical_volume = critical_volume
        self.model = None
        self.surface_pressure = const.SURFACE_PRESSURE
        self._nuclei = None
        self._gradients = None
        self._first_stop = None
        self._last_pvt = None


    def reset(self, model, surface_pressure):
        """
        Prepare the strategy for new plan calculation.

        :param model: Tissue model.
        :param surface_pressure: Surface pressure [bar].
        """
        self.model = model
        self.surface_pressure = surface_pressure
        self._nuclei = None
        self._gradients = None
        self._first_stop = None
        self._last_pvt = None


    def validate(self):
        levels = range(len(self.CONSERVATISM))
        if not isinstance(self.conservatism, int) or self.conservatism not in levels:
            raise ConfigError(
                'VPM-B conservatism level has to be within 0-{}, got {}'
                .format(levels[-1], self.conservatism)
            )


    def start_ascent(self, step):
        """
        Calculate regenerated nuclei and initial allowable gradients at the
        start of an ascent.

        :param step: Dive step at the start of the ascent.
        """
        self._nuclei = self._regenerate(step.data, step.time)
        self._gradients = tuple(
            (self._initial_gradient(r_n2), self._initial_gradient(r_he))
            for (r_n2, _), (r_he, _) in self._nuclei
        )
        self._first_stop = None
        self._last_pvt = (0.0,) * len(self._nuclei)
        if __debug__:
            logger.debug('vpm-b: initial gradients {}'.format(self._gradients))


    def first_stop(self, abs_p):
        """
        Set first decompression stop for Boyle's law compensation.

        :param abs_p: Absolute pressure of first decompression stop or
            null.
        """
        self._first_stop = abs_p


    def end_ascent(self, steps):
        """
        Check if decompression schedule converged.

        If schedule did not converge, then new allowable gradients are
        calculated with critical volume algorithm and false is returned.

        :param steps: Dive steps of the ascent.
        """
        first_stop = self._first_stop
        deco = first_stop is not None \
            and first_stop - self.surface_pressure > const.EPSILON
        if not self.critical_volume or not deco:
            return True

        start = self._deco_zone_start(steps)
        last = steps[-1]
        deco_time = last.time - start
        pvt = tuple(deco_time + t for t in self._surface_phase(last.data))

        converged = any(abs(p - l) <= 1 for p, l in zip(pvt, self._last_pvt))
        self._last_pvt = pvt
        if __debug__:
            logger.debug(
                'vpm-b: phase volume time {:.4f}min, converged={}'
                .format(max(pvt), converged)
            )
        if converged:
            return True

        self._gradients = tuple(
            (self._new_gradient(r_n2, c_n2, t), self._new_gradient(r_he, c_he, t))
            for ((r_n2, c_n2), (r_he, c_he)), t in zip(self._nuclei, pvt)
        )
        self._first_stop = None
        return False


    def compute_ceiling(self, state, abs_p=None):
        """
        Calculate pressure of ascent ceiling.

        The most restrictive tissue compartment determines the ceiling. The
        ceiling is never above the surface.

        :param state: Tissue state.
        :param abs_p: Absolute pressure of current depth, used for Boyle's
            law compensation.
        """
        gradients = self._gradients
        if gradients is None:
            gradients = tuple(
                (self._initial_gradient(r_n2), self._initial_gradient(r_he))
                for (r_n2, _), (r_he, _) in self._regenerate(state, 0)
            )

        first_stop = self._first_stop
        boyle = first_stop is not None and abs_p is not None \
            and abs_p < first_stop

        limit = 0.0
        for (p_n2, p_he), (g_n2, g_he) in zip(state.tissues, gradients):
            if boyle:
                g_n2 = self._boyle(g_n2, first_stop, abs_p)
                g_he = self._boyle(g_he, first_stop, abs_p)
            p = p_n2 + p_he
            if p > 0:
                g = (g_n2 * p_n2 + g_he * p_he) / p
            else:
                g = min(g_n2, g_he)
            limit = max(limit, p + const.PRESSURE_OTHER_GASES - g)
        return max(limit, self.surface_pressure)


    def _critical_radius(self, radius):
        return radius * self.CONSERVATISM[self.conservatism]


    def _regenerate(self, state, time):
        """
        Calculate regenerated radius and adjusted crushing pressure of
        nuclei for nitrogen and helium in each tissue compartment.

        :param state: Tissue state.
        :param time: Dive time [min].
        """
        r_n2 = self._critical_radius(self.N2_RADIUS)
        r_he = self._critical_radius(self.HE_RADIUS)
        return tuple(
            (self._nuclear_regeneration(r_n2, p, time),
                self._nuclear_regeneration(r_he, p, time))
            for p in state.crushing
        )


    def _nuclear_regeneration(self, radius, crushing, time):
        """
        Calculate regenerated radius of nuclei and adjusted crushing
        pressure.

        :param radius: Critical radius [um].
        :param crushing: Crushing pressure [bar].
        :param time: Dive time [min].
        """
        if crushing <= 0:
            return radius, 0.0
        gamma, gamma_c = self.SURFACE_TENSION, self.SKIN_COMPRESSION
        end = 1 / (crushing / (2 * (gamma_c - gamma)) + 1 / radius)
        regen = radius + (end - radius) * math.exp(-time / self.REGENERATION_TIME)
        ratio = end * (radius - regen) / (regen * (radius - end))
        return regen, crushing * ratio


    def _initial_gradient(self, radius):
        gamma, gamma_c = self.SURFACE_TENSION, self.SKIN_COMPRESSION
        return 2 * gamma * (gamma_c - gamma) / (radius * gamma_c)


    def _new_gradient(self, radius, crushing, time):
        """
        Calculate allowable gradient with critical volume algorithm.

        :param radius: Regenerated radius of nuclei [um].
        :param crushing: Adjusted crushing pressure [bar].
        :param time: Desaturation (phase volume) time [min].
        """
        gamma, gamma_c = self.SURFACE_TENSION, self.SKIN_COMPRESSION
        lambda_ = self.CRITICAL_VOLUME_LAMBDA
        b = self._initial_gradient(radius) + lambda_ * gamma / (gamma_c * time)
        c = gamma ** 2 * lambda_ * crushing / (gamma_c ** 2 * time)
        return 0.5 * (b + math.sqrt(max(b ** 2 - 4 * c, 0)))


    def _boyle(self, gradient, first_stop, abs_p):
        """
        Compensate allowable gradient for bubble growth due to Boyle's law.

        :param gradient: Allowable gradient at first stop [bar].
        :param first_stop: Absolute pressure of first decompression stop.
        :param abs_p: Absolute pressure of current depth.
        """
        b = gradient ** 3 / (first_stop + gradient)
        return cubic_root(b, abs_p * b)


    def _deco_zone_start(self, steps):
        """
        Find time when the leading tissue compartment enters decompression
        zone during an ascent.

        :param steps: Dive steps of the ascent.
        """
        other = const.PRESSURE_OTHER_GASES
        for step in steps:
            if any(p_n2 + p_he + other > step.abs_p for p_n2, p_he in step.data.tissues):
                return step.time
        return steps[0].time


    def _surface_phase(self, state):
        """
        Calculate surface phase volume time for each tissue compartment.

        :param state: Tissue state at the surface.
        """
        model = self.model
        p_insp = model.START_P_N2 \
            * (self.surface_pressure - model.water_vapour_pressure)
        data = zip(state.tissues, model.n2_k_const, model.he_k_const)
        result = []
        for (p_n2, p_he), k_n2, k_he in data:
            if p_n2 > p_insp:
                t = (p_he / k_he + (p_n2 - p_insp) / k_n2) \
                    / (p_he + p_n2 - p_insp)
            elif p_he > 0 and p_he + p_n2 > p_insp:
                decay = math.log((p_insp - p_n2) / p_he) / (k_n2 - k_he)
                integral = p_he / k_he * (1 - math.exp(-k_he * decay)) \
                    + (p_n2 - p_insp) / k_n2 * (1 - math.exp(-k_n2 * decay))
                t = integral / (p_he + p_n2 - p_insp)
            else:
                t = 0.0
            result.append(t)
        return tuple(result)


# vim: sw=4:et:ai
