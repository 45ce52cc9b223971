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
Breathing gas mixes and cylinders.

A gas mix is defined by fractions of oxygen, helium and nitrogen. The
nitrogen fraction is derived, so for trimix 18/45 we have::

    >>> mix = GasMix(0.18, 0.45)
    >>> mix.name
    '18/45'
    >>> round(mix.n2, 2)
    0.37

Cylinders are kept in gas registry, which is consulted by decompression
engine during plan calculation. Cylinder is referenced by its index in the
registry.
"""

import logging
from collections import namedtuple

from .error import ConfigError
from . import const

logger = logging.getLogger(__name__)


class GasMix(namedtuple('GasMix', 'o2 he n2')):
    """
    Gas mix configuration.

    :var o2: O2 fraction.
    :var he: Helium fraction.
    :var n2: N2 fraction.
    """
    __slots__ = ()

    def __new__(cls, o2, he=0.0, n2=None):
        if n2 is None:
            n2 = 1 - o2 - he
            # rounding noise, i.e. 1 - 0.21 - 0.79
            if abs(n2) < const.EPSILON:
                n2 = 0.0
        fractions = (o2, he, n2)
        if any(v < 0 or v > 1 for v in fractions):
            raise ConfigError(
                'Gas mix fraction out of range: o2={}, he={}, n2={}'
                .format(o2, he, n2)
            )
        if abs(sum(fractions) - 1) > const.GAS_FRACTION_TOLERANCE:
            raise ConfigError(
                'Gas mix fractions do not sum to 1: o2={}, he={}, n2={}'
                .format(o2, he, n2)
            )
        return super().__new__(cls, o2, he, n2)


    @property
    def inert(self):
        """
        Inert gas fraction.
        """
        return self.n2 + self.he


    @property
    def name(self):
        o2 = round(self.o2 * 100)
        he = round(self.he * 100)
        if he > 0:
            return '{}/{}'.format(o2, he)
        elif o2 == 100:
            return 'Oxygen'
        elif o2 == 21:
            return 'Air'
        return 'EAN{}'.format(o2)


    def partial_pressures(self, abs_p, setpoint=None):
        """
        Calculate partial pressures of O2, N2 and He at absolute pressure.

        When closed circuit rebreather setpoint is specified, the gas mix
        is diluent. The partial pressure of O2 is set to setpoint (limited
        by absolute pressure) and the remaining pressure is divided between
        nitrogen and helium in proportion of diluent inert gas fractions.

        :param abs_p: Absolute pressure [bar].
        :param setpoint: CCR setpoint [bar] or null for open circuit.
        """
        if setpoint is None:
            return self.o2 * abs_p, self.n2 * abs_p, self.he * abs_p

        po2 = min(setpoint, abs_p)
        inert = self.inert
        if inert == 0:
            return po2, 0.0, 0.0
        p = abs_p - po2
        return po2, p * self.n2 / inert, p * self.he / inert



class Cylinder(object):
    """
    Gas cylinder.

    :var gas: Gas mix in the cylinder.
    :var size: Water volume of the cylinder [l].
    :var working_pressure: Working pressure of the cylinder [bar].
    :var pressure: Current pressure of the cylinder [bar].
    :var diluent: True if the gas is closed circuit rebreather diluent.
    """
    def __init__(
            self, gas, size=const.CYLINDER_SIZE,
            working_pressure=const.CYLINDER_PRESSURE, pressure=None,
            diluent=False):
        self.gas = gas
        self.size = size
        self.working_pressure = working_pressure
        self.pressure = working_pressure if pressure is None else pressure
        self.diluent = diluent


    def __repr__(self):
        return 'Cylinder(gas={}, size={}, pressure={:.1f}, diluent={})' \
            .format(self.gas.name, self.size, self.pressure, self.diluent)


    @property
    def capacity(self):
        """
        Volume of gas [l] at surface pressure stored in the cylinder (ideal
        gas).
        """
        return self.size * self.pressure


    def consume(self, volume):
        """
        Consume volume of gas from the cylinder and return new pressure.

        The pressure can drop below zero, it is responsibility of a caller
        to report such condition.

        :param volume: Volume of gas at surface pressure [l].
        """
        self.pressure -= volume / self.size
        return self.pressure


    def copy(self):
        return Cylinder(
            self.gas, self.size, self.working_pressure, self.pressure,
            self.diluent
        )



class GasRegistry(object):
    """
    Registry of cylinders available for a dive plan.

    Cylinders are referenced by their index. The first cylinder added has
    index 0.
    """
    def __init__(self):
        self._cylinders = []


    def __len__(self):
        return len(self._cylinders)


    def __iter__(self):
        return iter(self._cylinders)


    def add(self, o2, he=0.0, size=const.CYLINDER_SIZE,
            working_pressure=const.CYLINDER_PRESSURE, pressure=None,
            diluent=False):
        """
        Add cylinder with gas mix to the registry and return index of the
        cylinder.

        :param o2: O2 fraction, i.e. 0.32.
        :param he: Helium fraction, i.e. 0.45.
        :param size: Water volume of the cylinder [l].
        :param working_pressure: Working pressure of the cylinder [bar].
        :param pressure: Starting pressure of the cylinder [bar], working
            pressure by default.
        :param diluent: Closed circuit rebreather diluent if true.
        """
        gas = GasMix(o2, he)
        cylinder = Cylinder(gas, size, working_pressure, pressure, diluent)
        self._cylinders.append(cylinder)
        if __debug__:
            logger.debug('added {} as cylinder {}'.format(
                cylinder, len(self._cylinders) - 1
            ))
        return len(self._cylinders) - 1


    def cylinder(self, index):
        """
        Get cylinder by its index.

        :param index: Cylinder index.
        """
        if not isinstance(index, int) or not 0 <= index < len(self._cylinders):
            raise ConfigError('Gas not found: cylinder {}'.format(index))
        return self._cylinders[index]


    @property
    def diluent(self):
        """
        Index of diluent cylinder or null if there is no diluent.
        """
        indexes = [i for i, c in enumerate(self._cylinders) if c.diluent]
        return indexes[0] if indexes else None


    def copy(self):
        """
        Create copy of the registry, so cylinder pressures can be changed
        without affecting this registry.
        """
        registry = GasRegistry()
        registry._cylinders = [c.copy() for c in self._cylinders]
        return registry


    def validate(self):
        """
        Validate the registry.

        `ConfigError` is raised if

        #. There are no cylinders.
        #. Gas mix fractions of a cylinder do not sum to 1.
        #. There is more than one diluent cylinder.
        #. Size or pressure of a cylinder is not positive.
        """
        if not self._cylinders:
            raise ConfigError('No gas mix configured')

        for i, c in enumerate(self._cylinders):
            gas = c.gas
            total = gas.o2 + gas.he + gas.n2
            if abs(total - 1) > const.GAS_FRACTION_TOLERANCE:
                raise ConfigError(
                    'Gas mix of cylinder {} does not sum to 1'.format(i)
                )
            if c.size <= 0 or c.pressure <= 0:
                raise ConfigError(
                    'Cylinder {} size and pressure has to be positive'
                    .format(i)
                )

        if sum(1 for c in self._cylinders if c.diluent) > 1:
            raise ConfigError('More than one diluent cylinder configured')


# vim: sw=4:et:ai
