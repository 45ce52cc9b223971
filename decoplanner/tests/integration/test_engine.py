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
DecoPlanner engine integration tests.
"""

from decoplanner import create, render, profile
from decoplanner.budget import Budget, CancelToken
from decoplanner.engine import SegmentKind, State
from decoplanner.error import CalculationAborted, WarningKind
from decoplanner import const

import unittest


class EngineTest(unittest.TestCase):
    """
    Abstract class for all DecoPlanner engine test cases.
    """
    def _engine(self, *args, **kw):
        engine = create(*args, **kw)
        return engine


    def setUp(self):
        self.engine = self._engine()


    def _kinds(self, plan):
        return [s.kind for s in plan.segments]


    def _check_plan(self, plan):
        """
        Check dive plan segments are consistent.
        """
        segments = plan.segments
        for s1, s2 in zip(segments, segments[1:]):
            self.assertAlmostEqual(s1.start_time + s1.time, s2.start_time)
            self.assertAlmostEqual(s1.end_depth, s2.start_depth)
        for s in segments:
            self.assertTrue(s.time >= 0, s)
            self.assertTrue(s.ceiling <= s.end_depth + 1e-6, s)
            gas = s.gas
            self.assertAlmostEqual(1, gas.o2 + gas.he + gas.n2, delta=1e-6)
        self.assertEqual(0, segments[-1].end_depth)
        self.assertAlmostEqual(
            plan.runtime, segments[-1].start_time + segments[-1].time
        )



class EngineTestCase(EngineTest):
    """
    DecoPlanner engine integration tests.
    """
    def test_determinism(self):
        """
        Test dive plan calculation is deterministic
        """
        plans = []
        for i in range(2):
            engine = self._engine()
            engine.strategy.gf_low = 0.3
            engine.strategy.gf_high = 0.7
            engine.add_gas(0.21)
            engine.add_gas(0.5)
            plans.append(engine.calculate([(40, 30)]))

        p1, p2 = plans
        self.assertEqual(p1.segments, p2.segments)
        self.assertEqual(p1.warnings, p2.warnings)
        self.assertEqual(p1.exposure, p2.exposure)
        self.assertEqual(p1.deco_table, p2.deco_table)


    def test_no_deco_dive(self):
        """
        Test no decompression dive to 18m for 20 minutes on air
        """
        engine = self.engine
        engine.strategy.gf_low = 1.0
        engine.strategy.gf_high = 1.0
        engine.safety_stop = False
        engine.add_gas(0.21)

        plan = engine.calculate([(18, 20)])
        self._check_plan(plan)
        self.assertNotIn(SegmentKind.DECO_STOP, self._kinds(plan))
        self.assertEqual(0, len(plan.deco_table))
        self.assertEqual(State.SURFACED, engine.state)

        # direct ascent
        ascent = [s for s in plan.segments if s.kind == SegmentKind.ASCENT]
        self.assertEqual(18, ascent[0].start_depth)
        self.assertEqual(0, ascent[-1].end_depth)


    def test_deco_dive(self):
        """
        Test decompression dive to 40m for 30 minutes on air
        """
        engine = self.engine
        engine.strategy.gf_low = 0.3
        engine.strategy.gf_high = 0.7
        engine.add_gas(0.21)

        plan = engine.calculate([(40, 30)])
        self._check_plan(plan)

        stops = [s for s in plan.segments if s.kind == SegmentKind.DECO_STOP]
        self.assertTrue(len(stops) >= 1)
        self.assertTrue(plan.deco_table.total > 0)
        self.assertAlmostEqual(
            plan.deco_table.total, sum(s.time for s in stops)
        )

        # runtime of direct ascent at 10m/min and 3m/min from 6m
        naive = 30 + 34 / 10 + 6 / 3
        self.assertTrue(plan.runtime > naive)

        # stops are at stop interval depths and shallower over time
        depths = [s.depth for s in plan.deco_table]
        self.assertEqual(sorted(depths, reverse=True), depths)
        self.assertTrue(all(round(d) % 3 == 0 for d in depths))
        self.assertEqual(3, depths[-1])


    def test_gf_first_stop(self):
        """
        Test gradient factor at first decompression stop interpolated from
        maximum depth
        """
        engine = self.engine
        engine.strategy.gf_low = 0.3
        engine.strategy.gf_high = 0.7
        engine.add_gas(0.21)

        plan = engine.calculate([(40, 30)])
        depth = plan.deco_table[0].depth
        gf = engine.strategy.gf(engine._to_pressure(depth))
        self.assertAlmostEqual(0.7 - 0.4 * depth / 40, gf)
        self.assertTrue(gf > 0.3)
        max_p = engine._to_pressure(40)
        self.assertAlmostEqual(0.3, engine.strategy.gf(max_p))


    def test_gf_first_stop_anchor(self):
        """
        Test gradient factor low at first decompression stop when anchored
        at first stop
        """
        engine = self.engine
        engine.strategy.gf_low = 0.3
        engine.strategy.gf_high = 0.7
        engine.strategy.gf_low_at_maxdepth = False
        engine.add_gas(0.21)

        plan = engine.calculate([(40, 30)])
        self._check_plan(plan)
        depth = plan.deco_table[0].depth
        gf = engine.strategy.gf(engine._to_pressure(depth))
        self.assertAlmostEqual(0.3, gf)


    def test_gf_conservatism(self):
        """
        Test lower gradient factors give longer decompression
        """
        totals = []
        for gf_low, gf_high in ((0.3, 0.85), (0.3, 0.7)):
            engine = self._engine()
            engine.strategy.gf_low = gf_low
            engine.strategy.gf_high = gf_high
            engine.add_gas(0.21)
            plan = engine.calculate([(40, 30)])
            totals.append(plan.deco_table.total)
        self.assertTrue(totals[0] < totals[1], totals)


    def test_otu_low_po2(self):
        """
        Test no OTU accumulated at pO2 below 0.5 bar
        """
        engine = self.engine
        engine.add_gas(0.21)
        plan = engine.calculate([(10, 30)])
        self.assertEqual(0, plan.exposure.otu)
        self.assertEqual(0, plan.exposure.cns)


    def test_exposure(self):
        """
        Test oxygen exposure accumulated on nitrox
        """
        engine = self.engine
        engine.add_gas(0.32)
        plan = engine.calculate([(30, 30)])
        self.assertTrue(plan.exposure.cns > 0)
        self.assertTrue(plan.exposure.otu > 0)
        self.assertEqual([], [
            w for w in plan.warnings if w.kind == WarningKind.PO2_HIGH
        ])


    def test_po2_warning(self):
        """
        Test high pO2 warning at the bottom
        """
        engine = self.engine
        engine.add_gas(0.5)
        plan = engine.calculate([(30, 20)])
        kinds = [w.kind for w in plan.warnings]
        self.assertIn(WarningKind.PO2_HIGH, kinds)

        times = [w.time for w in plan.warnings]
        self.assertEqual(sorted(times), times)


    def test_gas_switch(self):
        """
        Test gas switch to decompression gas
        """
        engine = self.engine
        engine.strategy.gf_low = 0.3
        engine.strategy.gf_high = 0.7
        engine.add_gas(0.21)
        engine.add_gas(0.5)

        plan = engine.calculate([(40, 30)])
        self._check_plan(plan)

        switches = [
            s for s in plan.segments if s.kind == SegmentKind.GAS_SWITCH
        ]
        self.assertEqual(1, len(switches))
        sw = switches[0]
        self.assertEqual(0, sw.time)
        self.assertEqual(1, sw.cylinder)
        po2 = 0.5 * engine._to_pressure(sw.end_depth)
        self.assertTrue(po2 <= 1.6 + 1e-9, po2)
        self.assertEqual([], [
            w for w in plan.warnings if w.kind == WarningKind.GAS_UNREACHABLE
        ])

        # decompression on EAN50 is shorter than on air
        engine = self._engine()
        engine.strategy.gf_low = 0.3
        engine.strategy.gf_high = 0.7
        engine.add_gas(0.21)
        air = engine.calculate([(40, 30)])
        self.assertTrue(plan.runtime < air.runtime)


    def test_gas_switch_required_stop(self):
        """
        Test gas switch only at required decompression stop
        """
        engine = self.engine
        engine.strategy.gf_low = 0.3
        engine.strategy.gf_high = 0.7
        engine.switch_at_required_stop = True
        engine.add_gas(0.21)
        engine.add_gas(0.5)

        plan = engine.calculate([(40, 30)])
        self._check_plan(plan)

        segments = plan.segments
        k = self._kinds(plan).index(SegmentKind.GAS_SWITCH)
        sw, stop = segments[k], segments[k + 1]
        self.assertEqual(SegmentKind.DECO_STOP, stop.kind)
        self.assertEqual(sw.end_depth, stop.end_depth)
        self.assertEqual(1, stop.cylinder)


    def test_gas_unreachable(self):
        """
        Test warning for cylinder which is never used
        """
        engine = self.engine
        engine.add_gas(0.21)
        engine.add_gas(0.18, 0.45)

        plan = engine.calculate([(18, 20)])
        kinds = [w.kind for w in plan.warnings]
        self.assertIn(WarningKind.GAS_UNREACHABLE, kinds)


    def test_too_many_gases(self):
        """
        Test warning for too many gas mixes
        """
        engine = self.engine
        for i in range(const.MAX_GAS_MIXES + 1):
            engine.add_gas(0.21)

        plan = engine.calculate([(18, 20)])
        kinds = [w.kind for w in plan.warnings]
        self.assertEqual(1, kinds.count(WarningKind.TOO_MANY_GASES))
        self.assertEqual(
            const.MAX_GAS_MIXES, kinds.count(WarningKind.GAS_UNREACHABLE)
        )


    def test_gas_consumption(self):
        """
        Test gas consumption of a dive
        """
        engine = self.engine
        engine.add_gas(0.21, size=12, pressure=200)
        engine.add_gas(0.5, size=7, pressure=200)

        plan = engine.calculate([(40, 30)])
        bottom, deco = plan.cylinders
        self.assertTrue(bottom.volume > deco.volume > 0)
        self.assertTrue(bottom.end_pressure < bottom.start_pressure)

        # 12l cylinder is not enough for 30 minutes at 40m
        kinds = [w.kind for w in plan.warnings]
        self.assertIn(WarningKind.GAS_RESERVE, kinds)


    def test_gas_reserve_deco(self):
        """
        Test gas reserve of decompression dive includes decompression stops
        """
        engine = self.engine
        engine.strategy.gf_low = 0.3
        engine.strategy.gf_high = 0.7
        engine.add_gas(0.21, size=24)

        plan = engine.calculate([(40, 30)])
        bottom = plan.cylinders[0]
        self.assertTrue(bottom.end_pressure > 0)

        # enough gas for the dive, but not for sharing it during the
        # ascent with decompression stops
        kinds = [w.kind for w in plan.warnings]
        self.assertNotIn(WarningKind.GAS_OVER_CAPACITY, kinds)
        self.assertEqual([WarningKind.GAS_RESERVE], kinds)


    def test_multilevel_dive(self):
        """
        Test multilevel dive
        """
        engine = self.engine
        engine.add_gas(0.21)
        plan = engine.calculate([(30, 20), (15, 20)])
        self._check_plan(plan)

        bottom = [s for s in plan.segments if s.kind == SegmentKind.BOTTOM]
        self.assertEqual([30, 15], [s.end_depth for s in bottom])
        self.assertAlmostEqual(40, bottom[-1].start_time + bottom[-1].time)


    def test_ccr_dive(self):
        """
        Test closed circuit rebreather dive
        """
        engine = self.engine
        engine.add_gas(0.21, diluent=True)
        engine.add_gas(0.5)

        plan = engine.calculate([(40, 30, 0, 1.3)])
        self._check_plan(plan)

        self.assertTrue(all(s.setpoint == 1.3 for s in plan.segments))
        self.assertNotIn(SegmentKind.GAS_SWITCH, self._kinds(plan))
        self.assertTrue(plan.exposure.cns > 0)
        self.assertEqual(0, plan.cylinders[0].volume)

        bottom = [s for s in plan.segments if s.kind == SegmentKind.BOTTOM]
        self.assertAlmostEqual(1.3, bottom[0].pressures[0])


    def test_safety_stop(self):
        """
        Test safety stop on no decompression dive
        """
        engine = self.engine
        engine.safety_stop = True
        engine.add_gas(0.21)

        plan = engine.calculate([(18, 20)])
        self._check_plan(plan)
        stops = [s for s in plan.segments if s.kind == SegmentKind.SAFETY_STOP]
        self.assertEqual(1, len(stops))
        self.assertEqual(const.SAFETY_STOP_DEPTH, stops[0].end_depth)
        self.assertAlmostEqual(const.SAFETY_STOP_TIME, stops[0].time)


    def test_cancel(self):
        """
        Test dive plan calculation cancellation
        """
        engine = self.engine
        engine.add_gas(0.21)
        token = CancelToken()
        token.cancel()
        self.assertRaises(
            CalculationAborted, engine.calculate, [(40, 30)], cancel=token
        )
        self.assertEqual(State.ABORTED, engine.state)
        self.assertEqual([], engine.segments)


    def test_render(self):
        """
        Test rendering of calculated dive plan
        """
        engine = self.engine
        engine.add_gas(0.21)
        engine.add_gas(0.5)
        plan = engine.calculate([(40, 30)])

        text = render(plan.segments, plan.exposure, plan.warnings,
            plan.cylinders)
        lines = text.splitlines()
        self.assertEqual(
            'Transition to 40m at rate 20m/min - runtime 2:00 on Air',
            lines[0]
        )
        self.assertEqual(
            'Stay at 40m for 28:00 - runtime 30:00 on Air', lines[1]
        )
        self.assertTrue(any('(gas switch)' in l for l in lines))
        self.assertTrue(any('(deco stop)' in l for l in lines))
        self.assertTrue(any(l.startswith('CNS: ') for l in lines))

        samples = profile(plan.segments)
        self.assertEqual(len(plan.segments) + 1, len(samples))
        self.assertEqual(0, samples[-1].depth)



class VPMBTestCase(EngineTest):
    """
    VPM-B strategy integration tests.
    """
    def _engine(self, *args, **kw):
        return create('vpmb', *args, **kw)


    def test_deco_dive(self):
        """
        Test decompression dive with VPM-B
        """
        engine = self.engine
        engine.add_gas(0.21)
        plan = engine.calculate([(40, 30)])
        self._check_plan(plan)
        self.assertTrue(plan.deco_table.total > 0)
        self.assertEqual(State.SURFACED, engine.state)


    def test_conservatism(self):
        """
        Test higher VPM-B conservatism gives longer decompression
        """
        totals = []
        for level in (0, 4):
            engine = self._engine()
            engine.strategy.conservatism = level
            engine.add_gas(0.21)
            plan = engine.calculate([(40, 30)])
            totals.append(plan.deco_table.total)
        self.assertTrue(totals[0] < totals[1], totals)


    def test_no_deco_dive(self):
        """
        Test no decompression dive with VPM-B
        """
        engine = self.engine
        engine.add_gas(0.21)
        plan = engine.calculate([(12, 20)])
        self._check_plan(plan)
        self.assertEqual(0, len(plan.deco_table))


    def test_abort(self):
        """
        Test VPM-B calculation of deep, long dive aborted within budget
        """
        engine = self.engine
        engine.strategy.conservatism = 5
        engine.add_gas(0.21)

        budget = Budget(max_iterations=20000)
        self.assertRaises(
            CalculationAborted, engine.calculate, [(100, 60)], budget=budget
        )
        self.assertEqual(State.ABORTED, engine.state)
        self.assertEqual([], engine.segments)
        self.assertEqual([], engine.warnings)
        self.assertTrue(budget.iterations <= 20001)


# vim: sw=4:et:ai
