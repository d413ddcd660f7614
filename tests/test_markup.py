import unittest

from responsify.generator import expand_urls
from responsify.markup import build_picture, build_srcset_img, preserve_attributes
from responsify.models import GeneratedUrl
from responsify.utils import build_tag

TEMPLATE = "{basePath}/{filename}_{width}w.{format}"
RECORD = {"basePath": "https://cdn.example.com/images", "filename": "hero", "ext": "jpg"}
HERO_ATTRIBUTES = {"src": "https://cdn.example.com/images/hero.jpg", "alt": "Hero"}


class TestPictureBuilder(unittest.TestCase):
    def test_webp_and_original_sources_with_middle_fallback(self):
        formats = ["webp", "original"]
        generated = expand_urls(TEMPLATE, RECORD, [400, 800], formats)
        markup = build_picture(generated, HERO_ATTRIBUTES, formats, record=RECORD)
        self.assertEqual(
            markup,
            "<picture>"
            '<source type="image/webp" srcset="https://cdn.example.com/images/hero_400w.webp 400w, '
            'https://cdn.example.com/images/hero_800w.webp 800w">'
            '<source srcset="https://cdn.example.com/images/hero_400w.jpg 400w, '
            'https://cdn.example.com/images/hero_800w.jpg 800w">'
            '<img alt="Hero" src="https://cdn.example.com/images/hero_800w.jpg">'
            "</picture>",
        )

    def test_source_order_follows_declaration_with_original_last(self):
        formats = ["original", "avif", "webp"]
        generated = expand_urls(TEMPLATE, RECORD, [400], formats)
        markup = build_picture(generated, HERO_ATTRIBUTES, formats, record=RECORD)
        avif = markup.index('type="image/avif"')
        webp = markup.index('type="image/webp"')
        original = markup.index('<source srcset="https://cdn.example.com/images/hero_400w.jpg')
        self.assertLess(avif, webp)
        self.assertLess(webp, original)

    def test_unknown_format_has_no_type(self):
        formats = ["heic"]
        generated = expand_urls(TEMPLATE, RECORD, [400], formats)
        markup = build_picture(generated, HERO_ATTRIBUTES, formats, record=RECORD)
        self.assertIn('<source srcset="https://cdn.example.com/images/hero_400w.heic 400w">', markup)
        self.assertIn('src="https://cdn.example.com/images/hero_400w.heic"', markup)

    def test_sizes_and_loading(self):
        formats = ["webp"]
        generated = expand_urls(TEMPLATE, RECORD, [400], formats)
        markup = build_picture(
            generated, HERO_ATTRIBUTES, formats, sizes="100vw", loading="eager", record=RECORD
        )
        self.assertIn('sizes="100vw">', markup)
        self.assertIn('loading="eager"', markup)

    def test_original_loading_is_kept_when_rule_has_none(self):
        generated = expand_urls(TEMPLATE, RECORD, [400], ["original"])
        attributes = {"src": "hero.jpg", "loading": "lazy"}
        markup = build_picture(generated, attributes, ["original"], record=RECORD)
        self.assertIn('<img loading="lazy" src=', markup)

    def test_attributes_are_preserved_and_escaped(self):
        generated = expand_urls(TEMPLATE, RECORD, [400], ["original"])
        attributes = {
            "src": "hero.jpg",
            "srcset": "old.jpg 1x",
            "sizes": "50vw",
            "class": "hero wide",
            "id": "main",
            "data-info": "value",
            "alt": 'Tom & "Jerry"',
            "style": "width: 100%",
        }
        markup = build_picture(generated, attributes, ["original"], record=RECORD)
        self.assertIn(
            '<img class="hero wide" id="main" data-info="value" '
            'alt="Tom &amp; &quot;Jerry&quot;" style="width: 100%" '
            'src="https://cdn.example.com/images/hero_400w.jpg">',
            markup,
        )
        self.assertNotIn("old.jpg", markup)


class TestSrcsetBuilder(unittest.TestCase):
    def test_srcset_for_target_format(self):
        generated = expand_urls(TEMPLATE, RECORD, [320, 640, 1280], ["webp", "original"])
        markup = build_srcset_img(
            generated, {"src": "hero.jpg", "class": "x"}, "webp", sizes="100vw"
        )
        self.assertEqual(
            markup,
            '<img class="x" src="https://cdn.example.com/images/hero_640w.webp" '
            'srcset="https://cdn.example.com/images/hero_320w.webp 320w, '
            "https://cdn.example.com/images/hero_640w.webp 640w, "
            'https://cdn.example.com/images/hero_1280w.webp 1280w" sizes="100vw">',
        )

    def test_first_present_format_when_unspecified(self):
        generated = expand_urls(TEMPLATE, RECORD, [400], ["avif", "webp"])
        markup = build_srcset_img(generated, {"src": "hero.jpg"})
        self.assertIn("hero_400w.avif 400w", markup)
        self.assertNotIn("webp", markup)

    def test_missing_format_falls_back_to_original_src(self):
        generated = expand_urls(TEMPLATE, RECORD, [400], ["webp"])
        markup = build_srcset_img(generated, {"src": "hero.jpg", "class": "x"}, "avif")
        self.assertEqual(markup, '<img class="x" src="hero.jpg">')

    def test_sizes_and_loading_only_when_available(self):
        generated = [GeneratedUrl("a.jpg", 400, "original")]
        bare = build_srcset_img(generated, {"src": "x.jpg"}, "original")
        self.assertNotIn("sizes", bare)
        self.assertNotIn("loading", bare)

        kept = build_srcset_img(
            generated, {"src": "x.jpg", "sizes": "50vw", "loading": "eager"}, "original"
        )
        self.assertIn('sizes="50vw"', kept)
        self.assertIn('loading="eager"', kept)

        overridden = build_srcset_img(
            generated,
            {"src": "x.jpg", "sizes": "50vw", "loading": "eager"},
            "original",
            sizes="100vw",
            loading="lazy",
        )
        self.assertIn('sizes="100vw"', overridden)
        self.assertIn('loading="lazy"', overridden)


class TestPreserveAttributes(unittest.TestCase):
    def test_replaced_attributes_are_dropped_and_updates_overlaid(self):
        self.assertEqual(
            preserve_attributes(
                {"src": "a", "srcset": "b", "sizes": "c", "alt": "d", "loading": "lazy"},
                {"src": "new", "loading": "eager", "sizes": None},
            ),
            {"alt": "d", "loading": "eager", "src": "new"},
        )


class TestTagRendering(unittest.TestCase):
    def test_values_are_escaped_and_empty_values_are_bare(self):
        self.assertEqual(
            build_tag("img", {"alt": "<Tom's & Jerry's>", "hidden": "", "title": None}),
            '<img alt="&lt;Tom&#x27;s &amp; Jerry&#x27;s&gt;" hidden>',
        )
        self.assertEqual(build_tag("picture", {}), "<picture>")


if __name__ == "__main__":
    unittest.main()
