#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (C) 2024 Jonathan Lee
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License version 3
# as published by the Free Software Foundation.
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.
# See the GNU Affero General Public License for more details.
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see https://www.gnu.org/licenses/.

"""
Convenience script to run all line chart tests.
"""

import os
import sys

import pytest


def main():
    print("=== Running Line Chart Tests ===")

    # Test basic import
    try:
        from linechart import Chart, render_chart
        print("✅ Successfully imported linechart")
    except Exception as e:
        print(f"❌ Failed to import linechart: {e}")
        return False

    package_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'linechart')
    return pytest.main([package_dir]) == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
