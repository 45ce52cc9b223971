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
Computation budget and cancellation tests.
"""

from decoplanner.budget import Budget, CancelToken
from decoplanner.error import CalculationAborted

import unittest
from unittest import mock


class BudgetTestCase(unittest.TestCase):
    """
    Computation budget tests.
    """
    def test_iterations(self):
        """
        Test budget exceeded by amount of iterations
        """
        budget = Budget(max_iterations=2, max_time=None)
        budget.tick()
        budget.tick()
        self.assertRaises(CalculationAborted, budget.tick)
        self.assertEqual(3, budget.iterations)


    def test_time(self):
        """
        Test budget exceeded by wall-clock time
        """
        clock = mock.MagicMock(side_effect=[0, 1, 5])
        budget = Budget(max_time=2, clock=clock)
        budget.tick() # no exception expected
        with self.assertRaises(CalculationAborted) as ctx:
            budget.tick()
        self.assertIn('excessive time', str(ctx.exception))


    def test_cancel(self):
        """
        Test calculation cancelled with cancellation token
        """
        token = CancelToken()
        budget = Budget(cancel=token, max_time=None)
        budget.tick()
        token.cancel()
        with self.assertRaises(CalculationAborted) as ctx:
            budget.tick()
        self.assertIn('cancelled', str(ctx.exception))


# vim: sw=4:et:ai
