"""Layout and annotation engine for multi-track evidence timelines."""

from .chains import ChainGraph, ChainHighlight, NO_HIGHLIGHT
from .config import AppSettings, LayoutSettings, PeriodCompression, RenderConfig
from .controller import TimelineController
from .dataset import dataset_from_dict, load_dataset
from .derived import DerivedTable, derive_attributes
from .errors import DatasetLoadError, OverrideStoreError, TimelineError
from .gaps import build_gap_bands
from .labels import LabelPlacement, LabelPlacer
from .mapping import CoordinateMapper, date_to_x
from .models import ChainLink, Event, InformationGap, Segment, TimelineDataset, Track
from .overrides import JsonFileStore, LabelOverrideStore, MemoryStore, Point
from .pipeline import RenderResult, TimelineRenderer
from .segments import build_segments
from .stacking import TrackStacker
from .surface import PlotlySurface, Surface

__version__ = "0.1.0"
