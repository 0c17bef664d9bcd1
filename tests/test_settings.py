import json

from fluidcursor.Settings import Settings, WindowSettings
from fluidcursor.flow.fluid import FluidFlowConfig


def test_save_and_load(tmp_path):
    settings = Settings(
        window=WindowSettings(width=800, height=600, fullscreen=True),
        fluid=FluidFlowConfig(sim_resolution=64, back_color=(0.1, 0.2, 0.3), shading=False),
    )
    path = str(tmp_path / 'settings.json')
    settings.save(path)

    loaded = Settings.load(path)

    assert loaded.window == settings.window
    assert isinstance(loaded.fluid, FluidFlowConfig)
    assert loaded.fluid.sim_resolution == 64
    assert loaded.fluid.back_color == (0.1, 0.2, 0.3)
    assert loaded.fluid.shading is False


def test_saved_json_is_plain(tmp_path):
    path = tmp_path / 'settings.json'
    Settings().save(str(path))

    data = json.loads(path.read_text())
    assert data['window']['width'] == 1280
    assert data['fluid']['back_color'] == [0.0, 0.0, 0.0]
    assert '_listeners' not in data['fluid']


def test_partial_file_uses_defaults(tmp_path):
    path = tmp_path / 'settings.json'
    path.write_text(json.dumps({'fluid': {'curl': 5, 'unknown': 1}}))

    loaded = Settings.load(str(path))

    assert loaded.fluid.curl == 5.0
    assert isinstance(loaded.fluid.curl, float)
    assert loaded.fluid.dye_resolution == 1440
    assert loaded.window == WindowSettings()
