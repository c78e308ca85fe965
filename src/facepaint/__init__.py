"""
FacePaint: Anime-Style Face Filters
===================================

FacePaint is a desktop application that applies pretrained AnimeGANv2
style-transfer generators to a user's photo. The user picks an image, it is
normalized to an upright 1024x1024 square, and one of four filters can be
applied and reverted.

Available filters:

1. **FacePaint V1**: strong anime stylization of portraits
2. **FacePaint V2**: softer portrait stylization
3. **Paprika**: saturated film style
4. **CelebA Distill**: light, fast stylization

Quick Start
-----------
>>> from facepaint.core import ModelManager, normalize, run_inference
>>> from facepaint.models import ModelIdentifier
>>>
>>> mm = ModelManager("cpu")
>>> img = normalize(open("portrait.jpg", "rb").read())
>>> model = mm.resolve(ModelIdentifier.FACE_PAINT_V2)
>>> out = run_inference(model, img)
>>> out.size
(1024, 1024)

Main Modules
------------
models
    Generator architecture, weight download and loading
core
    Image normalization, model cache, inference, session state, tasks
ui
    PySide6 GUI components

See Also
--------
apps.gui_app : Entry point for launching the GUI
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
