"""LayoutRenderer tests"""

from multistream.layout.geometry import Size
from multistream.layout.manager import LayoutManager
from multistream.render import LayoutRenderer


def make_manager() -> LayoutManager:
    manager = LayoutManager("grid2x2", Size(1280, 720))
    manager.add_stream("twitch:shroud")
    manager.add_stream("youtube:abc")
    return manager


class TestRenderText:
    def test_titles_and_marks(self):
        manager = make_manager()
        manager.set_focus("twitch:shroud")
        manager.set_audio_active("youtube:abc")

        text = LayoutRenderer().render_text(
            manager.snapshot(), {"twitch:shroud": "Shroud", "youtube:abc": "Launch"}
        )

        assert "* Shroud" in text
        assert "♪ Launch" in text

    def test_untitled_streams_use_id(self):
        text = LayoutRenderer().render_text(make_manager().snapshot())
        assert "twitch:shroud" in text

    def test_canvas_size(self):
        renderer = LayoutRenderer(width=40)
        lines = renderer.render_text(make_manager().snapshot()).splitlines()
        assert len(lines) == renderer.canvas_height(Size(1280, 720))
        assert all(len(line) <= 40 for line in lines)

    def test_fullscreen(self):
        manager = make_manager()
        manager.toggle_fullscreen("youtube:abc")

        text = LayoutRenderer().render_text(manager.snapshot(), {"youtube:abc": "Launch"})

        assert "[fullscreen]" in text
        assert "twitch:shroud" not in text

    def test_pip_pane_drawn(self):
        manager = make_manager()
        manager.detach_to_pip("youtube:abc", size=Size(480, 270))
        text = LayoutRenderer().render_text(manager.snapshot(), {"youtube:abc": "PiP"})
        assert "PiP" in text


class TestRenderSvg:
    def test_svg_document(self):
        svg = LayoutRenderer().render_svg(make_manager().snapshot(), title="Wall\x00")
        assert svg.lstrip().startswith("<svg")
        assert "Wall" in svg
