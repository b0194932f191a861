#!/usr/bin/env python3
"""
Print Sheet Imposition Calculator — Grid Fit + SVG Layout Sheet
================================================================
Works out how many identical rectangular pieces fit on a press sheet once
the lateral margins, the leading/trailing clearances and the gutter between
pieces are reserved, and picks the piece orientation (0° or 90°) that gives
the most pieces.  Both orientations are always computed so the layout can be
flipped to the alternate grid without recomputing.

Architecture
------------
  parse_dimension()    Coerce raw form text or numbers to non-negative floats.
  compute_layout()     Validate a LayoutRequest and build both candidate
                         grids (normal and rotated) plus the optimum.
  LayoutView           Show the optimal or the alternate candidate.
  format_report()      Plain-text summary of the displayed candidate.
  SVGGenerator         Render the displayed candidate as an SVG layout sheet
                         with five named layers (back to front):
                         sheet      — sheet outline
                         clearances — leading, trailing and lateral zones
                         gutters    — spacing between adjacent pieces
                         pieces     — one trim rectangle per piece
                         text       — captions converted to path outlines

Usage
-----
    python imposition.py 8.5 11
    python imposition.py 8.5 11 --sheet-width 17 --sheet-height 22
    python imposition.py 3.5 2 --gutter 0.25 --leading 0.5 --trailing 0.5
    python imposition.py 8.5 11 --invert -o output/flyer

Sheet Geometry
--------------
    +------------------------------+
    |      leading clearance       |   top edge
    +----+--------------------+----+
    | LM |  pieces + gutters  | LM |
    +----+--------------------+----+
    |      trailing clearance      |   bottom edge
    +------------------------------+

    usable width  = sheet width  - 2 * lateral margin
    usable height = sheet height - leading - trailing

Dependencies
------------
    Required : svgwrite, fonttools
"""

import argparse
import configparser
import math
import os
import re
import sys
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import svgwrite
from fontTools.pens.svgPathPen import SVGPathPen
from fontTools.pens.transformPen import TransformPen
from fontTools.ttLib import TTFont, TTLibError

# ============================================================================
# CONFIGURATION
# ============================================================================

CONFIG_FILENAME = 'imposition.conf'
DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                                   CONFIG_FILENAME)

# Every key lives in DEFAULT so any section can be read with a fallback.
CONFIG_DEFAULTS = {
    # [colors]
    'sheet':    '#374151',
    'leading':  '#6b7280',
    'trailing': '#ef4444',
    'lateral':  '#6b7280',
    'gutter':   '#6b7280',
    'piece':    '#34d399',
    'text':     '#374151',
    # [dimensions]
    'piece_width':        '8.5',
    'piece_height':       '11.0',
    'sheet_width':        '17.0',
    'sheet_height':       '22.0',
    'lateral_margin':     '0.375',
    'gutter_size':        '0.125',
    'leading_clearance':  '0.375',
    'trailing_clearance': '0.5',
    # [sheet]
    'units':         'in',
    'output_prefix': 'output/layout',
    'max_render_pieces': '10000',
    # [font]
    'name':          'Arial',
    'path':          '',
    'caption_scale': '0.02',
}

CONFIG_SECTIONS = ('colors', 'dimensions', 'sheet', 'font')


def load_config(path: Optional[str] = None) -> configparser.ConfigParser:
    """
    Load the INI configuration, falling back to built-in defaults.

    The returned parser always carries the ``colors``, ``dimensions``,
    ``sheet`` and ``font`` sections, so lookups never fail on a missing
    section even when no file is found.

    Parameters
    ----------
    path : Path to an ``imposition.conf`` style file.  When omitted,
           ``imposition.conf`` in the current directory is used, then the
           one next to this module.

    Returns
    -------
    ConfigParser with CONFIG_DEFAULTS in its DEFAULT section and any values
    from the file layered on top.
    """
    if path is None:
        candidates = [os.path.join(os.getcwd(), CONFIG_FILENAME), DEFAULT_CONFIG_PATH]
        path = next((p for p in candidates if os.path.exists(p)), DEFAULT_CONFIG_PATH)

    cfg = configparser.ConfigParser(defaults=CONFIG_DEFAULTS)
    if os.path.exists(path):
        cfg.read(path, encoding='utf-8')
        print(f"  → Loaded config: {path}")
    else:
        print(f"  ⚠️  Warning: Config file not found ({path}), using built-in defaults")

    for section in CONFIG_SECTIONS:
        if not cfg.has_section(section):
            cfg.add_section(section)
    return cfg


CFG = load_config()

# ============================================================================
# DATA STRUCTURES
# ============================================================================

NORMAL = 'normal'
ROTATED = 'rotated'


class LayoutErrorKind(Enum):
    """The two ways a request can fail validation."""

    INVALID_DIMENSIONS = "InvalidDimensions"
    MARGINS_EXCEED_SHEET = "MarginsExceedSheet"


@dataclass(frozen=True)
class LayoutError:
    """Validation failure attached to a LayoutResult in place of candidates."""

    kind: LayoutErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class LayoutRequest:
    """
    The eight numeric inputs of one layout computation.

    Every field is passed through parse_dimension() on construction, so raw
    form text (``"8.5"``, ``"0.375in"``, ``""``) is accepted and each stored
    value is a finite float ``>= 0``.

    Attributes
    ----------
    piece_width        : Width of one cut piece.
    piece_height       : Height of one cut piece.
    sheet_width        : Press sheet width.
    sheet_height       : Press sheet height.
    lateral_margin     : Clearance applied to both the left and right edge.
    gutter             : Spacing between adjacent pieces on both axes.
    leading_clearance  : Clearance reserved at the top edge.
    trailing_clearance : Clearance reserved at the bottom edge.

    All lengths share one linear unit (inches by default).
    """

    piece_width: float
    piece_height: float
    sheet_width: float
    sheet_height: float
    lateral_margin: float = 0.0
    gutter: float = 0.0
    leading_clearance: float = 0.0
    trailing_clearance: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, parse_dimension(getattr(self, f.name)))

    @classmethod
    def from_defaults(cls, cfg: Optional[configparser.ConfigParser] = None,
                      **overrides) -> 'LayoutRequest':
        """
        Build a request from the ``[dimensions]`` section of *cfg*.

        Keyword arguments named after the request fields replace the
        configured value; ``None`` overrides are ignored so optional CLI
        flags can be passed straight through.
        """
        cfg = cfg if cfg is not None else CFG
        values = {name: cfg.get('dimensions', key)
                  for name, key in _DIMENSION_KEYS.items()}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# LayoutRequest field -> [dimensions] key
_DIMENSION_KEYS = {
    'piece_width':        'piece_width',
    'piece_height':       'piece_height',
    'sheet_width':        'sheet_width',
    'sheet_height':       'sheet_height',
    'lateral_margin':     'lateral_margin',
    'gutter':             'gutter_size',
    'leading_clearance':  'leading_clearance',
    'trailing_clearance': 'trailing_clearance',
}


@dataclass(frozen=True)
class LayoutCandidate:
    """
    One grid of pieces in a single orientation.

    Attributes
    ----------
    columns      : Pieces across the usable width.
    rows         : Pieces down the usable height.
    rotated      : True when the piece is turned 90° relative to the request.
    piece_width  : Effective piece width on the sheet (swapped if rotated).
    piece_height : Effective piece height on the sheet (swapped if rotated).
    gutter       : Spacing between adjacent pieces.
    """

    columns: int
    rows: int
    rotated: bool
    piece_width: float
    piece_height: float
    gutter: float = 0.0

    @property
    def total(self) -> int:
        return self.columns * self.rows

    @property
    def key(self) -> str:
        return ROTATED if self.rotated else NORMAL

    @property
    def used_width(self) -> float:
        """Width of the grid, counting only the gutters between columns."""
        return _grid_extent(self.columns, self.piece_width, self.gutter)

    @property
    def used_height(self) -> float:
        """Height of the grid, counting only the gutters between rows."""
        return _grid_extent(self.rows, self.piece_height, self.gutter)

    @property
    def piece_area(self) -> float:
        """Combined area of all placed pieces."""
        return self.total * self.piece_width * self.piece_height

    def positions(self, origin_x: float = 0.0,
                  origin_y: float = 0.0) -> Iterator[Tuple[float, float]]:
        """
        Yield the top-left corner of every piece, row by row.

        Parameters
        ----------
        origin_x : Left edge of the usable area on the sheet.
        origin_y : Top edge of the usable area on the sheet.
        """
        step_x = self.piece_width + self.gutter
        step_y = self.piece_height + self.gutter
        for row in range(self.rows):
            for col in range(self.columns):
                yield (origin_x + col * step_x, origin_y + row * step_y)


def _grid_extent(count: int, piece: float, gutter: float) -> float:
    if count <= 0:
        return 0.0
    return count * piece + (count - 1) * gutter


@dataclass(frozen=True)
class LayoutResult:
    """
    Outcome of compute_layout().

    Either ``error`` is set and both candidates are None, or ``error`` is
    None and both ``normal`` and ``rotated`` are present.  The validated
    request is echoed unchanged for rendering and reporting.
    """

    request: LayoutRequest
    normal: Optional[LayoutCandidate] = None
    rotated: Optional[LayoutCandidate] = None
    error: Optional[LayoutError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def optimal(self) -> Optional[LayoutCandidate]:
        """The candidate with the larger total; ties go to the normal grid."""
        if not self.ok:
            return None
        if self.normal.total >= self.rotated.total:
            return self.normal
        return self.rotated

    @property
    def alternate(self) -> Optional[LayoutCandidate]:
        """The candidate that is not optimal."""
        if not self.ok:
            return None
        return self.rotated if self.optimal is self.normal else self.normal

    def candidate(self, key: str) -> Optional[LayoutCandidate]:
        """Look a candidate up by ``'normal'`` or ``'rotated'``."""
        if key == NORMAL:
            return self.normal
        if key == ROTATED:
            return self.rotated
        raise ValueError(f"Unknown candidate key: {key!r}")

    @property
    def usable_width(self) -> float:
        if not self.ok:
            return 0.0
        return self.request.sheet_width - 2 * self.request.lateral_margin

    @property
    def usable_height(self) -> float:
        if not self.ok:
            return 0.0
        r = self.request
        return r.sheet_height - r.leading_clearance - r.trailing_clearance

    @property
    def sheet_width(self) -> float:
        return self.request.sheet_width

    @property
    def sheet_height(self) -> float:
        return self.request.sheet_height

    @property
    def lateral_margin(self) -> float:
        return self.request.lateral_margin

    @property
    def gutter(self) -> float:
        return self.request.gutter

    @property
    def leading_clearance(self) -> float:
        return self.request.leading_clearance

    @property
    def trailing_clearance(self) -> float:
        return self.request.trailing_clearance

    def efficiency(self, candidate: Optional[LayoutCandidate] = None) -> float:
        """
        Sheet utilisation as a percentage [0, 100].

        Sum of the placed piece areas of *candidate* (the optimum by
        default) divided by the full sheet area.  Margins, clearances and
        gutters count as waste.
        """
        candidate = candidate if candidate is not None else self.optimal
        sheet_area = self.request.sheet_width * self.request.sheet_height
        if candidate is None or sheet_area <= 0:
            return 0.0
        return candidate.piece_area / sheet_area * 100


@dataclass(frozen=True)
class LayoutView:
    """
    Which candidate of a result is on display.

    Switching orientation only swaps the view; the result already holds
    both candidates.
    """

    result: LayoutResult
    inverted: bool = False

    @property
    def candidate(self) -> Optional[LayoutCandidate]:
        if self.inverted:
            return self.result.alternate
        return self.result.optimal

    def invert(self) -> 'LayoutView':
        if not self.result.ok:
            return self
        return replace(self, inverted=not self.inverted)

    def revert(self) -> 'LayoutView':
        if not self.result.ok:
            return self
        return replace(self, inverted=False)


# ============================================================================
# INPUT COERCION
# ============================================================================

# Leading numeric prefix, read the way a browser parses number form fields.
_LEADING_NUMBER = re.compile(r'\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


def parse_dimension(raw) -> float:
    """
    Coerce one raw input value to a non-negative finite float.

    Numbers pass through.  Strings are read by their leading numeric prefix,
    so ``"8.5in"`` gives 8.5 and ``" .375"`` gives 0.375.  Empty or
    non-numeric text, ``None``, NaN, infinities and negative values all
    give 0.0.  Never raises.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return 0.0
    else:
        match = _LEADING_NUMBER.match(str(raw))
        if not match:
            return 0.0
        value = float(match.group(1))

    if not math.isfinite(value) or value <= 0:
        return 0.0
    return value


# ============================================================================
# LAYOUT OPTIMIZER
# ============================================================================

# Bias added before flooring so an exact fit such as 0.3 / 0.1, which
# evaluates to 2.9999999999999996, still counts as 3.
FIT_EPSILON = sys.float_info.epsilon

MSG_INVALID_DIMENSIONS = "Piece and sheet dimensions must be positive."
MSG_MARGINS_EXCEED_SHEET = "Margins or clearances are too large for the sheet."
MSG_DIMENSIONS_OUT_OF_RANGE = "Dimensions are too large to lay out."


def fit_count(usable: float, piece: float, gutter: float) -> int:
    """
    Number of pieces that fit along one axis.

    N pieces need N - 1 gutters, so ``N*piece + (N-1)*gutter <= usable``,
    which rearranges to ``N <= (usable + gutter) / (piece + gutter)``.

    Parameters
    ----------
    usable : Usable length on this axis.
    piece  : Piece length on this axis.
    gutter : Spacing between adjacent pieces.

    Returns
    -------
    Largest whole number of pieces that fit; 0 when ``piece + gutter <= 0``.
    """
    if piece + gutter <= 0:
        return 0
    return math.floor(_fit_ratio(usable, piece, gutter) + FIT_EPSILON)


def _fit_ratio(usable: float, piece: float, gutter: float) -> float:
    return (usable + gutter) / (piece + gutter)


def compute_layout(request: LayoutRequest) -> LayoutResult:
    """
    Validate *request* and compute both candidate grids.

    Validation runs first and short-circuits:

    1. ``InvalidDimensions`` when any piece or sheet dimension is 0.
    2. ``MarginsExceedSheet`` when the leading plus trailing clearance
       reaches the sheet height, or twice the lateral margin reaches the
       sheet width.
   3. ``InvalidDimensions`` when a per-axis fit quotient overflows the
      float range (for example a tiny piece on an enormous sheet).

    Otherwise the normal grid (piece as given) and the rotated grid (piece
    turned 90°) are both built.  The function is pure and never raises;
    invalid input comes back as ``LayoutResult.error``.
    """
    r = request
    if min(r.piece_width, r.piece_height, r.sheet_width, r.sheet_height) <= 0:
        return LayoutResult(request, error=LayoutError(
            LayoutErrorKind.INVALID_DIMENSIONS, MSG_INVALID_DIMENSIONS))

    if (r.leading_clearance + r.trailing_clearance >= r.sheet_height
            or 2 * r.lateral_margin >= r.sheet_width):
        return LayoutResult(request, error=LayoutError(
            LayoutErrorKind.MARGINS_EXCEED_SHEET, MSG_MARGINS_EXCEED_SHEET))

    usable_width = r.sheet_width - 2 * r.lateral_margin
    usable_height = r.sheet_height - r.leading_clearance - r.trailing_clearance

    # Near the top of the float range the per-axis quotient overflows to inf.
    for usable in (usable_width, usable_height):
        for piece in (r.piece_width, r.piece_height):
            if not math.isfinite(_fit_ratio(usable, piece, r.gutter)):
                return LayoutResult(request, error=LayoutError(
                    LayoutErrorKind.INVALID_DIMENSIONS, MSG_DIMENSIONS_OUT_OF_RANGE))

    normal = LayoutCandidate(
        columns=fit_count(usable_width, r.piece_width, r.gutter),
        rows=fit_count(usable_height, r.piece_height, r.gutter),
        rotated=False,
        piece_width=r.piece_width,
        piece_height=r.piece_height,
        gutter=r.gutter,
    )
    rotated = LayoutCandidate(
        columns=fit_count(usable_width, r.piece_height, r.gutter),
        rows=fit_count(usable_height, r.piece_width, r.gutter),
        rotated=True,
        piece_width=r.piece_height,
        piece_height=r.piece_width,
        gutter=r.gutter,
    )
    return LayoutResult(request, normal=normal, rotated=rotated)


# ============================================================================
# REPORT
# ============================================================================

def format_report(view: LayoutView,
                  cfg: Optional[configparser.ConfigParser] = None) -> str:
    """
    Render the displayed candidate of *view* as a plain-text summary.

    Lists total pieces, horizontal and vertical fit, orientation, the sheet
    and piece dimensions used and the utilisation.  Error results render
    their message instead.
    """
    cfg = cfg if cfg is not None else CFG
    units = cfg.get('sheet', 'units')
    result = view.result

    if not result.ok:
        return f"Error: {result.error.message}"

    c = view.candidate
    orientation = "Rotated (H x W)" if c.rotated else "Normal (W x H)"
    lines = [
        f"Total pieces:       {c.total}",
        f"Horizontal fit:     {c.columns}",
        f"Vertical fit:       {c.rows}",
        f"Piece orientation:  {orientation}",
        f"Sheet used:         {result.sheet_width:.10g} x {result.sheet_height:.10g} {units}",
        f"Piece used:         {c.piece_width:.10g} x {c.piece_height:.10g} {units}",
        f"Utilisation:        {result.efficiency(c):.1f}%",
    ]
    if view.inverted:
        lines.append(f"Showing inverted layout (optimal: {result.optimal.total} pieces)")
    return '\n'.join(lines)


# ============================================================================
# SVGGenerator
# ============================================================================

FONT_SEARCH_PATHS = [
    'arial.ttf',
    '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
    '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
    '/System/Library/Fonts/Helvetica.ttc',
    'C:\\Windows\\Fonts\\arial.ttf',
]


class SVGGenerator:
    """
    Render the displayed candidate of a LayoutView as an SVG layout sheet.

    The drawing uses sheet units directly: the viewBox is
    ``0 0 sheet_width sheet_height`` and the document size carries the
    configured unit suffix, so the file prints at true size.

    =============  ==========================================================
    Group id       Content
    =============  ==========================================================
    sheet          Sheet outline.  (back layer)
    clearances     Leading strip (top), trailing strip (bottom) and the two
                   lateral strips between them.
    gutters        Strips between adjacent pieces.
    pieces         One filled trim rectangle per piece.
    text           Zone captions and sheet-size caption.  (front layer)
    =============  ==========================================================

    Captions are converted to path outlines with fontTools when a TrueType
    font can be located, otherwise they are written as <text> elements.
    """

    GENERATOR_NAME = "Print Sheet Imposition"

    def __init__(self, view: LayoutView,
                 cfg: Optional[configparser.ConfigParser] = None) -> None:
        self.view = view
        self.result = view.result
        self.cfg = cfg if cfg is not None else CFG
        self._init_font()

    def _init_font(self) -> None:
        """
        Load the first TrueType font found for caption outlines.

        ``[font] path`` is tried before the platform search list.  Sets
        ``self.font`` to a TTFont, or to None when nothing usable exists.
        """
        configured = self.cfg.get('font', 'path').strip()
        font_paths = ([configured] if configured else []) + FONT_SEARCH_PATHS

        self.font = None
        self.font_path = None

        for font_path in font_paths:
            if not os.path.exists(font_path):
                continue
            try:
                self.font = TTFont(font_path)
                self.font_path = font_path
                print(f"  → Loaded font: {font_path}")
                break
            except (OSError, TTLibError) as e:
                print(f"  ⚠️  Warning: Could not load font {font_path}: {e}")

        if not self.font:
            print("  ⚠️  Warning: No suitable font found, captions will use <text> elements")

    def generate(self) -> str:
        """
        Render the sheet to an SVG string.

        Returns
        -------
        Complete SVG document with an XML declaration followed by a
        metadata comment block.

        Raises
        ------
        ValueError
            If the result carries a validation error (nothing to draw), or the
            grid has more pieces than ``[sheet] max_render_pieces``.
        """
        candidate = self.view.candidate
        if candidate is None:
            raise ValueError(f"Nothing to render: {self.result.error}")

        max_pieces = self.cfg.getint('sheet', 'max_render_pieces')
        if candidate.total > max_pieces:
            raise ValueError(f"Layout has {candidate.total} pieces, more than the "
                             f"render limit of {max_pieces}")

        sw = self.result.sheet_width
        sh = self.result.sheet_height
        units = self.cfg.get('sheet', 'units')

        dwg = svgwrite.Drawing(size=(f"{sw:.10g}{units}", f"{sh:.10g}{units}"),
                               viewBox=f"0 0 {sw:.10g} {sh:.10g}")
        dwg.defs.add(dwg.style(self._style_text()))

        sheet_group = dwg.g(id='sheet')
        sheet_group.add(dwg.rect(insert=(0, 0), size=(sw, sh), class_='sheet'))
        dwg.add(sheet_group)

        clearance_group = dwg.g(id='clearances')
        for rect in self._clearance_rects():
            clearance_group.add(dwg.rect(insert=(rect['x'], rect['y']),
                                         size=(rect['width'], rect['height']),
                                         class_=rect['zone']))
        dwg.add(clearance_group)

        gutter_group = dwg.g(id='gutters')
        for rect in self._gutter_rects(candidate):
            gutter_group.add(dwg.rect(insert=(rect['x'], rect['y']),
                                      size=(rect['width'], rect['height']),
                                      class_='gutter'))
        dwg.add(gutter_group)

        piece_group = dwg.g(id='pieces')
        for rect in self._piece_rects(candidate):
            piece_group.add(dwg.rect(insert=(rect['x'], rect['y']),
                                     size=(rect['width'], rect['height']),
                                     class_='piece'))
        dwg.add(piece_group)

        text_group = dwg.g(id='text')
        for caption in self._captions():
            d = self._create_text_path(caption['text'], caption['x'], caption['y'],
                                       caption['size'], caption['anchor'])
            if d:
                text_group.add(dwg.path(d=d, class_='text-path'))
            else:
                text_group.add(dwg.text(caption['text'],
                                        insert=(caption['x'], caption['y']),
                                        font_size=caption['size'],
                                        text_anchor=caption['anchor'],
                                        class_='caption'))
        dwg.add(text_group)

        svg_string = dwg.tostring()

        orientation = "rotated 90°" if candidate.rotated else "normal"
        metadata_comment = f"""
<!-- {self.GENERATOR_NAME} -->
<!-- Pieces: {candidate.total} ({candidate.columns} x {candidate.rows}) -->
<!-- Orientation: {orientation} -->
<!-- Efficiency: {self.result.efficiency(candidate):.1f}% -->
"""
        if svg_string.startswith('<?xml'):
            xml_decl_end = svg_string.find('?>') + 2
            return svg_string[:xml_decl_end] + metadata_comment + svg_string[xml_decl_end:]
        return '<?xml version="1.0" encoding="utf-8" ?>' + metadata_comment + svg_string

    def _style_text(self) -> str:
        colors = self.cfg['colors']
        sw = self.result.sheet_width
        outline = sw * 0.004
        thin = sw * 0.002
        return f"""
            .sheet {{ fill: none; stroke: {colors['sheet']}; stroke-width: {outline:.10g}; }}
            .leading {{ fill: {colors['leading']}; fill-opacity: 0.2; stroke: none; }}
            .trailing {{ fill: {colors['trailing']}; fill-opacity: 0.2; stroke: {colors['trailing']}; stroke-width: {thin:.10g}; }}
            .lateral {{ fill: {colors['lateral']}; fill-opacity: 0.1; stroke: none; }}
            .gutter {{ fill: {colors['gutter']}; fill-opacity: 0.3; stroke: none; }}
            .piece {{ fill: {colors['piece']}; fill-opacity: 0.4; stroke: {colors['piece']}; stroke-width: {thin:.10g}; }}
            .text-path {{ fill: {colors['text']}; stroke: none; }}
            .caption {{ fill: {colors['text']}; font-family: {self.cfg.get('font', 'name')}; }}
        """

    def _clearance_rects(self) -> List[Dict]:
        """
        Rectangles for the reserved edge zones; zero-size zones are omitted.

        The lateral strips run only between the leading and trailing zones.
        """
        r = self.result
        sw, sh = r.sheet_width, r.sheet_height
        lead, trail, lm = r.leading_clearance, r.trailing_clearance, r.lateral_margin
        usable_h = r.usable_height

        rects = [
            {'zone': 'leading',  'x': 0,       'y': 0,          'width': sw, 'height': lead},
            {'zone': 'trailing', 'x': 0,       'y': sh - trail, 'width': sw, 'height': trail},
            {'zone': 'lateral',  'x': 0,       'y': lead,       'width': lm, 'height': usable_h},
            {'zone': 'lateral',  'x': sw - lm, 'y': lead,       'width': lm, 'height': usable_h},
        ]
        return [rect for rect in rects if rect['width'] > 0 and rect['height'] > 0]

    def _gutter_rects(self, candidate: LayoutCandidate) -> List[Dict]:
        """
        Strips between adjacent pieces.

        Vertical strips span the full grid height; horizontal strips are
        cut per column so the two sets never overlap.
        """
        g = candidate.gutter
        if g <= 0 or candidate.total == 0:
            return []

        ox = self.result.lateral_margin
        oy = self.result.leading_clearance
        pw, ph = candidate.piece_width, candidate.piece_height
        rects = []

        for col in range(candidate.columns - 1):
            rects.append({'x': ox + (col + 1) * pw + col * g, 'y': oy,
                          'width': g, 'height': candidate.used_height})
        for row in range(candidate.rows - 1):
            y = oy + (row + 1) * ph + row * g
            for col in range(candidate.columns):
                rects.append({'x': ox + col * (pw + g), 'y': y,
                              'width': pw, 'height': g})
        return rects

    def _piece_rects(self, candidate: LayoutCandidate) -> List[Dict]:
        return [{'x': x, 'y': y,
                 'width': candidate.piece_width, 'height': candidate.piece_height}
                for x, y in candidate.positions(self.result.lateral_margin,
                                                self.result.leading_clearance)]

    def _captions(self) -> List[Dict]:
        r = self.result
        size = r.sheet_width * self.cfg.getfloat('font', 'caption_scale')
        pad = size * 0.5
        units = self.cfg.get('sheet', 'units')
        return [
            {'text': 'Leading', 'x': pad, 'y': pad + size,
             'size': size, 'anchor': 'start'},
            {'text': 'Trailing', 'x': pad, 'y': r.sheet_height - pad,
             'size': size, 'anchor': 'start'},
            {'text': f"Sheet: {r.sheet_width:.10g} x {r.sheet_height:.10g} {units}",
             'x': r.sheet_width / 2,
             'y': r.sheet_height - r.trailing_clearance - pad,
             'size': size * 1.2, 'anchor': 'middle'},
        ]

    def _create_text_path(self, text: str, x: float, y: float, size: float,
                          anchor: str = 'start') -> str:
        """
        Render one line of text to merged SVG path data via fontTools.

        Each glyph is drawn through a TransformPen with the matrix
        ``(scale, 0, 0, -scale, current_x, y)`` into one shared SVGPathPen;
        the negative y-scale maps the font's y-up space onto SVG's y-down
        space.

        Parameters
        ----------
        text   : Single line of text.
        x      : Left edge (``anchor='start'``) or centre (``'middle'``).
        y      : Baseline position.
        size   : Em-size in sheet units.
        anchor : ``'start'`` or ``'middle'``.

        Returns
        -------
        Path data string, or ``''`` when no font is loaded or rendering
        fails.
        """
        if not self.font or not text:
            return ''

        try:
            scale = size / self.font['head'].unitsPerEm
            cmap = self.font.getBestCmap()
            if not cmap:
                return ''
            glyph_set = self.font.getGlyphSet()

            char_glyphs = []
            total_width = 0.0
            for char in text:
                glyph_name = cmap.get(ord(char))
                if glyph_name and glyph_name in glyph_set:
                    glyph = glyph_set[glyph_name]
                    advance = glyph.width * scale
                else:
                    glyph = None
                    advance = size * 0.5
                char_glyphs.append((glyph, advance))
                total_width += advance

            pen = SVGPathPen(glyph_set)
            current_x = x - total_width / 2 if anchor == 'middle' else x
            for glyph, advance in char_glyphs:
                if glyph is not None:
                    glyph.draw(TransformPen(pen, (scale, 0, 0, -scale, current_x, y)))
                current_x += advance
            return pen.getCommands()

        except Exception as e:
            print(f"  ⚠️  Warning: Text-to-path conversion failed: {e}")
            return ''


# ============================================================================
# MAIN FUNCTION
# ============================================================================

def generate_layout_sheet(request: LayoutRequest,
                          output_prefix: Optional[str] = None,
                          invert: bool = False,
                          cfg: Optional[configparser.ConfigParser] = None) -> Optional[str]:
    """
    Full pipeline: compute layout → print report → write SVG layout sheet.

    Parameters
    ----------
    request : LayoutRequest
        The eight layout inputs.
    output_prefix : str, optional
        Filename prefix; ``_normal.svg`` or ``_rotated.svg`` is appended.
        Defaults to ``[sheet] output_prefix``.  Missing directories are
        created.
    invert : bool
        Render the non-optimal orientation instead of the optimum.
    cfg : ConfigParser, optional
        Configuration; the module-level CFG by default.

    Returns
    -------
    Optional[str]
        The SVG filename, or None when the request failed validation or
        no piece fits in the displayed orientation, or the grid is larger
        than ``[sheet] max_render_pieces``.
    """
    cfg = cfg if cfg is not None else CFG
    output_prefix = output_prefix or cfg.get('sheet', 'output_prefix')
    units = cfg.get('sheet', 'units')
    r = request

    print("=" * 70)
    print("PRINT SHEET IMPOSITION")
    print("=" * 70)
    print(f"\nPiece size:  {r.piece_width:.10g} x {r.piece_height:.10g} {units}")
    print(f"Sheet size:  {r.sheet_width:.10g} x {r.sheet_height:.10g} {units}")
    print(f"Margins:     lateral {r.lateral_margin:.10g}, gutter {r.gutter:.10g}, "
          f"leading {r.leading_clearance:.10g}, trailing {r.trailing_clearance:.10g}")

    result = compute_layout(request)
    if not result.ok:
        print(f"\n❌ Error: {result.error.message}")
        return None

    view = LayoutView(result)
    if invert:
        view = view.invert()

    print(f"\n{'─' * 70}")
    print("LAYOUT")
    print(f"{'─' * 70}")
    print(f"Normal:  {result.normal.columns} x {result.normal.rows} = {result.normal.total}")
    print(f"Rotated: {result.rotated.columns} x {result.rotated.rows} = {result.rotated.total}")
    print(f"✅ Optimal orientation: {result.optimal.key}")
    print()
    print(format_report(view, cfg))

    candidate = view.candidate
    if candidate.total == 0:
        print(f"\n⚠️  Warning: No pieces fit in the {candidate.key} orientation; no SVG written")
        return None

    max_pieces = cfg.getint('sheet', 'max_render_pieces')
    if candidate.total > max_pieces:
        print(f"\n⚠️  Warning: {candidate.total} pieces exceed the render limit of "
              f"{max_pieces} ([sheet] max_render_pieces); no SVG written")
        return None

    filename = f"{output_prefix}_{candidate.key}.svg"
    out_dir = os.path.dirname(filename)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    svg_content = SVGGenerator(view, cfg).generate()
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(svg_content)

    print(f"\n📄 {filename}")
    print(f"{'═' * 70}")
    return filename


# ============================================================================
# CLI INTERFACE
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compute how many pieces fit on a print sheet and draw the layout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python imposition.py 8.5 11
  python imposition.py 8.5 11 --sheet-width 17 --sheet-height 22
  python imposition.py 3.5 2 --gutter 0.25 --lateral-margin 0.25
  python imposition.py 8.5 11 --invert            # show the other orientation

Values are read like form input: non-numeric or negative values count as 0.
Unset options fall back to the [dimensions] section of imposition.conf.

Output SVG layers:
  clearances — leading (top), trailing (bottom) and lateral zones
  gutters    — spacing between pieces
  pieces     — trim rectangles
        """
    )

    parser.add_argument("piece_width", help="Piece width")
    parser.add_argument("piece_height", help="Piece height")
    parser.add_argument("--sheet-width", help="Sheet width")
    parser.add_argument("--sheet-height", help="Sheet height")
    parser.add_argument("--lateral-margin",
                        help="Clearance on both the left and right edge")
    parser.add_argument("--gutter", help="Spacing between adjacent pieces")
    parser.add_argument("--leading", help="Clearance at the top edge")
    parser.add_argument("--trailing", help="Clearance at the bottom edge")
    parser.add_argument("-o", "--output", default=None,
                        help="Output path prefix (default: [sheet] output_prefix). "
                             "The directory is created automatically.")
    parser.add_argument("--invert", action="store_true",
                        help="Render the non-optimal orientation")
    parser.add_argument("--config", default=None, metavar="PATH",
                        help="Configuration file (default: ./imposition.conf, then the "
                             "one installed beside this module)")

    args = parser.parse_args(argv)

    cfg = load_config(args.config) if args.config else CFG
    request = LayoutRequest.from_defaults(
        cfg,
        piece_width=args.piece_width,
        piece_height=args.piece_height,
        sheet_width=args.sheet_width,
        sheet_height=args.sheet_height,
        lateral_margin=args.lateral_margin,
        gutter=args.gutter,
        leading_clearance=args.leading,
        trailing_clearance=args.trailing,
    )

    try:
        filename = generate_layout_sheet(request, args.output,
                                         invert=args.invert, cfg=cfg)
    except OSError as e:
        print(f"\n❌ Error: {e}")
        return 1
    return 0 if filename else 2


if __name__ == "__main__":
    sys.exit(main())
