# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test fixtures for the flowgraph engine
"""

import pytest

from flowgraph.core.config import Config


@pytest.fixture
def config():
    """Engine config without run log files or preview delays"""
    return Config(max_preview_delay=0.0, execution_log_dir=None, log_level="WARNING")
