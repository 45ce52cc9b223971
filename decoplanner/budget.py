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
Computation budget and cooperative cancellation of a plan calculation.

Decompression engine ticks the budget once per simulated time step. The
budget is exceeded when too many steps are simulated, when wall-clock time
limit passes or when the calculation is cancelled by a caller.
"""

import logging
import time

from .error import CalculationAborted
from . import const

logger = logging.getLogger(__name__)


class CancelToken(object):
    """
    Cancellation token shared between a caller and decompression engine.

    :var cancelled: True if cancellation has been requested.
    """
    def __init__(self):
        self.cancelled = False


    def cancel(self):
        """
        Request cancellation of a plan calculation.
        """
        self.cancelled = True



class Budget(object):
    """
    Computation budget of a plan calculation.

    :var max_iterations: Maximum amount of simulated time steps.
    :var max_time: Wall-clock time limit [s] or null for no limit.
    :var cancel: Cancellation token or null.
    :var iterations: Amount of simulated time steps so far.
    """
    def __init__(
            self, max_iterations=const.MAX_ITERATIONS,
            max_time=const.MAX_TIME, cancel=None, clock=time.monotonic):
        """
        Create computation budget.

        :param max_iterations: Maximum amount of simulated time steps.
        :param max_time: Wall-clock time limit [s] or null for no limit.
        :param cancel: Cancellation token.
        :param clock: Wall-clock time function.
        """
        self.max_iterations = max_iterations
        self.max_time = max_time
        self.cancel = cancel
        self.iterations = 0
        self._clock = clock
        self._start = clock()


    def tick(self):
        """
        Account one simulated time step.

        `CalculationAborted` is raised if the budget is exceeded or the
        calculation is cancelled.
        """
        self.iterations += 1

        if self.cancel is not None and self.cancel.cancelled:
            logger.error('plan calculation cancelled')
            raise CalculationAborted('Decompression calculation cancelled')

        if self.iterations > self.max_iterations:
            logger.error(
                'budget of {} steps exceeded'.format(self.max_iterations)
            )
            raise CalculationAborted(
                'Decompression calculation aborted due to excessive time'
            )

        if self.max_time is not None \
                and self._clock() - self._start > self.max_time:
            logger.error(
                'time limit of {}s exceeded'.format(self.max_time)
            )
            raise CalculationAborted(
                'Decompression calculation aborted due to excessive time'
            )


# vim: sw=4:et:ai
