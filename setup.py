#!/usr/bin/env python3
#
# DecoPlanner - dive decompression planning engine.
#
# Copyright (C) 2013 by Artur Wroblewski <wrobell@pld-linux.org>
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

from setuptools import setup, find_packages

import decoplanner

setup(
    name='decoplanner',
    version=decoplanner.__version__,
    description='DecoPlanner - dive decompression planning engine',
    author='Artur Wroblewski',
    author_email='wrobell@pld-linux.org',
    packages=find_packages('.', exclude=('*.tests', '*.tests.*')),
    include_package_data=True,
    long_description=\
"""\
DecoPlanner is Python dive decompression planning engine. It calculates
dive plan with decompression stops for a list of waypoints using Buhlmann
ZH-L16 model with Erik Baker's gradient factors or VPM-B model, tracks
oxygen exposure and estimates gas consumption.
""",
    classifiers=[
        'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
        'Programming Language :: Python :: 3',
        'Development Status :: 4 - Beta',
    ],
    keywords='diving dive decompression planner',
    license='GPL',
    install_requires=[],
    extras_require={'test': ['pytest']},
)

# vim: sw=4:et:ai
