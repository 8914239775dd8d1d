import os
import unittest
from dataclasses import FrozenInstanceError
from datetime import timedelta
from unittest.mock import patch

from contest_node.config.runtime import RuntimeSettings


class TestRuntimeSettings(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = RuntimeSettings.from_env()
        self.assertEqual(settings.target_position, 10)
        self.assertEqual(settings.round_expiry, timedelta(hours=24))
        self.assertEqual(settings.expiry_check_interval_seconds, 300)
        self.assertEqual(settings.settle_channel, "round_results")
        self.assertEqual(settings.settled_channel, "round_settled")

    def test_overrides(self):
        env = {
            "TARGET_POSITION": "8",
            "ROUND_EXPIRY_HOURS": "0.5",
            "EXPIRY_CHECK_INTERVAL_SECONDS": "60",
            "SETTLE_CHANNEL": "settle_now",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = RuntimeSettings.from_env()
        self.assertEqual(settings.target_position, 8)
        self.assertEqual(settings.round_expiry, timedelta(minutes=30))
        self.assertEqual(settings.expiry_check_interval_seconds, 60)
        self.assertEqual(settings.settle_channel, "settle_now")

    def test_settings_are_frozen(self):
        settings = RuntimeSettings.from_env()
        with self.assertRaises(FrozenInstanceError):
            settings.target_position = 3


if __name__ == "__main__":
    unittest.main()
