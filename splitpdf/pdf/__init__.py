"""Page segmentation and rasterization.

Primary public entry point:
    ``run_split_pipeline`` - splits one PDF into single-page artifacts:
      1. Loads the source document once.
      2. Copies every page into its own single-page PDF.
      3. Optionally rasterizes each page to PNG through a swappable surface
         factory.
      4. Uploads each artifact under ``{base}-{index}.pdf|png`` and reports the
         last one together with a document-type tag.
"""

from .runner import SplitPipeline, SplitPipelineConfig, run_split_pipeline


__all__ = ["SplitPipeline", "SplitPipelineConfig", "run_split_pipeline"]
