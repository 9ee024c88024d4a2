from __future__ import annotations

import base64
import io
import unittest
from unittest import mock

from helpers import crossed_level

from water_sort.env import WaterSortEnv
from water_sort.vision import (
    render_containers_image,
    render_env_image,
    render_level_image,
    render_state_image,
)

try:
    from PIL import Image as PILImage
except ImportError:  # pragma: no cover
    PILImage = None


class TestVision(unittest.TestCase):
    def test_missing_pillow_error_has_install_guidance(self) -> None:
        real_import = __import__

        def fake_import(name: str, *args: object, **kwargs: object):
            if name == "PIL" or name.startswith("PIL."):
                raise ImportError("No module named PIL")
            return real_import(name, *args, **kwargs)

        with mock.patch("builtins.__import__", side_effect=fake_import):
            with self.assertRaises(RuntimeError) as ctx:
                render_level_image(crossed_level())
        self.assertIn("water-sort[viz]", str(ctx.exception))

    @unittest.skipUnless(PILImage is not None, "pillow required for vision rendering")
    def test_render_level_png(self) -> None:
        image = render_level_image(crossed_level(), unit_size=20)
        self.assertEqual(image.mime_type, "image/png")
        self.assertTrue(image.data_url.startswith("data:image/png;base64,"))
        decoded = PILImage.open(io.BytesIO(base64.b64decode(image.data_base64)))
        self.assertEqual(decoded.size, (image.width, image.height))

    @unittest.skipUnless(PILImage is not None, "pillow required for vision rendering")
    def test_state_dict_and_env_render_match(self) -> None:
        env = WaterSortEnv(crossed_level())
        from_env = render_env_image(env)
        from_dict = render_state_image(env.get_state().to_dict())
        self.assertEqual(from_env.data_base64, from_dict.data_base64)

    @unittest.skipUnless(PILImage is not None, "pillow required for vision rendering")
    def test_render_rejects_bad_input(self) -> None:
        with self.assertRaises(ValueError):
            render_containers_image([])
        with self.assertRaises(ValueError):
            render_containers_image(crossed_level().initial_containers, unit_size=2)
        with self.assertRaises(ValueError):
            render_state_image({"level_id": 1})


if __name__ == "__main__":
    unittest.main()
