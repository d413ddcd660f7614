import asyncio
import unittest

from responsify.engine import responsify, responsify_async, transform_images_async
from responsify.models import Config, PatternExtract, Rule


def _config():
    return {
        "transforms": [
            {
                "selector": ".featured",
                "extract": {"pattern": r"image(\d+)\.jpg$", "groups": {"num": 1}},
                "urlTemplate": "featured{num}_{width}w.jpg",
                "widths": [400],
                "type": "srcset",
            },
            {
                "selector": "img",
                "extract": {"pattern": r"image(\d+)\.jpg$", "groups": {"num": 1}},
                "urlTemplate": "image{num}_{width}w.jpg",
                "widths": [400, 800],
                "type": "srcset",
            },
        ]
    }


def _document(count):
    images = []
    for index in range(count):
        css_class = ' class="featured"' if index % 7 == 0 else ""
        images.append(f'<img{css_class} src="https://example.com/image{index}.jpg">')
    return "<div>" + "".join(images) + "</div>"


class TestAsyncTransform(unittest.TestCase):
    def test_large_document(self):
        result = asyncio.run(responsify_async(_document(120), _config()))

        self.assertTrue(result.success)
        self.assertEqual(result.stats.images_found, 120)
        self.assertEqual(result.stats.images_transformed, 120)
        self.assertEqual(result.stats.rules_applied, 2)

    def test_matches_synchronous_output(self):
        html = _document(60)
        sync_result = responsify(html, _config())
        async_result = asyncio.run(responsify_async(html, _config()))

        self.assertEqual(async_result.html, sync_result.html)
        self.assertEqual(async_result.stats.images_transformed, sync_result.stats.images_transformed)
        self.assertEqual(async_result.stats.rules_applied, sync_result.stats.rules_applied)

    def test_rules_are_counted_once_across_batches(self):
        rule = Rule(
            "img",
            PatternExtract(r"image(\d+)\.jpg$", {"num": 1}),
            "image{num}_{width}w.jpg",
            [400],
            output_kind="srcset",
        )
        result = asyncio.run(
            transform_images_async(_document(10), Config(rules=[rule]), batch_size=3)
        )

        self.assertEqual(result.stats.images_transformed, 10)
        self.assertEqual(result.stats.rules_applied, 1)

    def test_other_tasks_run_between_batches(self):
        rule = Rule(
            "img",
            PatternExtract(r"image(\d+)\.jpg$", {"num": 1}),
            "image{num}_{width}w.jpg",
            [400],
            output_kind="srcset",
        )

        async def scenario():
            ticks = 0
            finished = False

            async def ticker():
                nonlocal ticks
                while not finished:
                    ticks += 1
                    await asyncio.sleep(0)

            task = asyncio.create_task(ticker())
            result = await transform_images_async(
                _document(9), Config(rules=[rule]), batch_size=3
            )
            ticks_during_run = ticks
            finished = True
            await task
            return result, ticks_during_run

        result, ticks = asyncio.run(scenario())

        self.assertEqual(result.stats.images_transformed, 9)
        self.assertGreaterEqual(ticks, 3)

    def test_invalid_configuration(self):
        result = asyncio.run(responsify_async("<img src='a.jpg'>", {"transforms": []}))

        self.assertFalse(result.success)
        self.assertIn("Transforms array cannot be empty", result.error)


if __name__ == "__main__":
    unittest.main()
