"""Unit tests for color, legend and calendar grid decoding."""
from datetime import date, datetime

import pytest
import pytz
from bs4 import BeautifulSoup

from processor.calendar_grid import (
    build_column_dates,
    decode_calendar,
    decode_cell,
    parse_row_time,
)
from processor.colors import extract_background, normalize_color, rgb_to_hex
from processor.html import cell_text, row_cells, table_rows
from processor.legend import decode_legend
from processor.models import CellMiss

PACIFIC = pytz.timezone('US/Pacific')
SOURCE = 'https://pso2.com/news/urgent-quests/abc123'


def parse_table(html):
    """Parse the first table in an HTML fragment."""
    return BeautifulSoup(html, 'html.parser').find('table')


def parse_row(html):
    """Parse the first row in an HTML fragment."""
    return BeautifulSoup(f"<table>{html}</table>", 'html.parser').find('tr')


class TestColors:
    """Test cases for color conversion helpers."""
    
    @pytest.mark.parametrize('color,expected', [
        ('rgb(255, 0, 0)', 'ff0000'),
        ('rgb(0,128,255)', '0080ff'),
        ('rgb(1, 2, 3)', '010203'),
    ])
    def test_rgb_to_hex(self, color, expected):
        """Test that triplets become zero padded lowercase hex."""
        assert rgb_to_hex(color) == expected
    
    @pytest.mark.parametrize('color', ['#ff0000', 'red', 'rgb(1, 2)', 'rgb(256, 0, 0)', ''])
    def test_rgb_to_hex_no_match(self, color):
        """Test that malformed input yields None."""
        assert rgb_to_hex(color) is None
    
    def test_normalize_color(self):
        """Test that colors are trimmed, lowercased and hex encoded."""
        assert normalize_color('  #FF0000 ') == '#ff0000'
        assert normalize_color('RGB(255, 0, 0)') == '#ff0000'
        assert normalize_color('Red') == 'red'
    
    def test_extract_background(self):
        """Test reading background declarations from style attributes."""
        assert extract_background('width: 10px; background: rgb(255, 0, 0);') == '#ff0000'
        assert extract_background('background-color: #00FF00') == '#00ff00'
        assert extract_background('color: red;') is None
        assert extract_background(None) is None


class TestTableHelpers:
    """Test cases for the shared table helpers."""
    
    def test_rows_with_and_without_tbody(self):
        """Test that rows are found whether or not a tbody is present."""
        plain = parse_table("<table><tr><td>a</td></tr><tr><td>b</td></tr></table>")
        wrapped = parse_table("<table><tbody><tr><td>a</td></tr></tbody></table>")
        
        assert len(table_rows(plain)) == 2
        assert len(table_rows(wrapped)) == 1
    
    def test_row_cells_only_direct_children(self):
        """Test that nested table cells are not counted."""
        row = parse_row(
            "<tr><th>Week</th><td><table><tr><td>x</td></tr></table></td></tr>"
        )
        
        assert len(row_cells(row)) == 2
    
    def test_cell_text_collapses_whitespace(self):
        """Test that markup and line breaks collapse to single spaces."""
        row = parse_row("<tr><td>  Mining<br>\n <b>Base</b>  Defense </td></tr>")
        
        assert cell_text(row_cells(row)[0]) == "Mining Base Defense"


class TestDecodeLegend:
    """Test cases for legend decoding."""
    
    LEGEND = """
    <table>
        <tr><td style="background: rgb(255, 0, 0);"></td><td>Boss Fight</td></tr>
        <tr><td style="background: #0000FF ;"></td><td>Mining <b>Base</b> Defense</td></tr>
        <tr><td></td><td>No swatch</td></tr>
    </table>
    """
    
    def test_decode_legend(self):
        """Test that legend rows map normalized colors to labeled names."""
        colors = decode_legend(parse_table(self.LEGEND), SOURCE)
        
        assert colors == {
            '#ff0000': f'Boss Fight: {SOURCE}',
            '#0000ff': f'Mining Base Defense: {SOURCE}',
        }
    
    def test_decode_legend_keys_normalized(self):
        """Test that every key is trimmed and lowercase."""
        colors = decode_legend(parse_table(self.LEGEND), SOURCE)
        
        for key in colors:
            assert key == key.strip().lower()
    
    def test_decode_legend_idempotent(self):
        """Test that decoding the same table twice gives the same mapping."""
        table = parse_table(self.LEGEND)
        
        assert decode_legend(table, SOURCE) == decode_legend(table, SOURCE)
    
    def test_decode_legend_empty(self):
        """Test that a legend with no usable rows gives an empty mapping."""
        table = parse_table('<table><tr><td></td><td>Nothing</td></tr></table>')
        
        assert decode_legend(table, SOURCE) == {}


class TestCalendarGrid:
    """Test cases for calendar grid decoding."""
    
    COLORS = {'#ff0000': f'Boss Fight: {SOURCE}'}
    
    def test_decode_single_quest(self):
        """Test decoding one colored cell into a UTC start time."""
        table = parse_table("""
        <table>
            <tr><td>Week</td><td>01/05</td></tr>
            <tr><td>02:00 PM</td><td style="background: #FF0000;"></td></tr>
        </table>
        """)
        
        quests = decode_calendar(table, self.COLORS, date(2024, 1, 3), PACIFIC)
        
        assert len(quests) == 1
        assert 'Boss Fight' in quests[0].name
        expected = PACIFIC.localize(datetime(2024, 1, 5, 14, 0)).astimezone(pytz.utc)
        assert quests[0].start_time == expected
        assert quests[0].start_time == datetime(2024, 1, 5, 22, 0, tzinfo=pytz.utc)
    
    def test_build_column_dates_with_colspan(self):
        """Test that spanned header cells repeat their date."""
        header = parse_row(
            '<tr><td>Week</td><td colspan="2">01/05</td><td>01/06</td>'
            '<td>bad</td><td colspan="x">01/07</td></tr>'
        )
        
        assert build_column_dates(header, 2024) == [
            date(2024, 1, 5),
            date(2024, 1, 5),
            date(2024, 1, 6),
            date(2024, 1, 7),
        ]
    
    @pytest.mark.parametrize('colspan', ['-1', '0'])
    def test_build_column_dates_non_positive_colspan(self, colspan):
        """Test that a non-positive colspan counts as a single column."""
        header = parse_row(
            f'<tr><td>Week</td><td colspan="{colspan}">01/05</td><td>01/06</td></tr>'
        )
        
        assert build_column_dates(header, 2024) == [date(2024, 1, 5), date(2024, 1, 6)]
    
    def test_colspan_aligns_data_columns(self):
        """Test that data cells after a merged header get the right dates."""
        table = parse_table("""
        <table>
            <tr><td>Week</td><td colspan="2">01/05</td><td>01/06</td></tr>
            <tr>
                <td>10:00 AM</td>
                <td style="background: #ff0000;"></td>
                <td style="background: #ff0000;"></td>
                <td style="background: #ff0000;"></td>
            </tr>
        </table>
        """)
        
        quests = decode_calendar(table, self.COLORS, date(2024, 1, 1), PACIFIC)
        
        local_dates = [quest.start_time.astimezone(PACIFIC).date() for quest in quests]
        assert local_dates == [date(2024, 1, 5), date(2024, 1, 5), date(2024, 1, 6)]
    
    def test_skips_non_time_rows_and_unmapped_cells(self):
        """Test that bad rows and cells are dropped without affecting others."""
        table = parse_table("""
        <table>
            <tr><td>Week</td><td>01/05</td><td>01/06</td></tr>
            <tr><td>Notes</td><td style="background: #ff0000;"></td><td></td></tr>
            <tr>
                <td>08:00 PM</td>
                <td style="background: #00ff00;"></td>
                <td style="background: #ff0000;"></td>
                <td style="background: #ff0000;"></td>
            </tr>
        </table>
        """)
        
        quests = decode_calendar(table, self.COLORS, date(2024, 1, 1), PACIFIC)
        
        assert len(quests) == 1
        assert quests[0].start_time == PACIFIC.localize(
            datetime(2024, 1, 6, 20, 0)
        ).astimezone(pytz.utc)
    
    def test_quest_count_bounded_by_grid_size(self):
        """Test that a fully colored grid yields at most one quest per cell."""
        header = '<tr><td>Week</td>' + ''.join(
            f'<td>01/{day:02d}</td>' for day in range(1, 8)
        ) + '</tr>'
        row = '<td style="background: #ff0000;"></td>' * 7
        body = ''.join(f'<tr><td>{hour}:00 PM</td>{row}</tr>' for hour in (1, 2, 3))
        table = parse_table(f'<table>{header}{body}</table>')
        
        quests = decode_calendar(table, self.COLORS, date(2024, 1, 1), PACIFIC)
        
        assert len(quests) == 3 * 7
    
    def test_nonexistent_local_time_dropped(self):
        """Test that a time skipped by the spring transition yields no quest."""
        table = parse_table("""
        <table>
            <tr><td>Week</td><td>03/10</td></tr>
            <tr><td>02:30 AM</td><td style="background: #ff0000;"></td></tr>
            <tr><td>04:00 AM</td><td style="background: #ff0000;"></td></tr>
        </table>
        """)
        
        quests = decode_calendar(table, self.COLORS, date(2024, 3, 1), PACIFIC)
        
        assert len(quests) == 1
        assert quests[0].start_time == datetime(2024, 3, 10, 11, 0, tzinfo=pytz.utc)
    
    def test_ambiguous_local_time_dropped(self):
        """Test that a repeated time in the fall transition yields no quest."""
        row = parse_row(
            '<tr><td>01:30 AM</td><td style="background: #ff0000;"></td></tr>'
        )
        cell = row.find_all('td')[1]
        
        result = decode_cell(
            cell, 0, parse_row_time(row), self.COLORS, [date(2024, 11, 3)], PACIFIC
        )
        
        assert not result.found
        assert result.miss is CellMiss.INVALID_LOCAL_TIME
    
    def test_decode_cell_misses(self):
        """Test that each lookup miss is reported for its cell."""
        row = parse_row(
            '<tr><td>09:00 AM</td><td></td><td style="background: blue;"></td>'
            '<td style="background: #ff0000;"></td></tr>'
        )
        cells = row.find_all('td')
        at = parse_row_time(row)
        column_dates = [date(2024, 1, 5), date(2024, 1, 6)]
        
        results = [
            decode_cell(cell, index, at, self.COLORS, column_dates, PACIFIC)
            for index, cell in enumerate(cells[1:])
        ]
        
        assert [result.miss for result in results] == [
            CellMiss.NO_COLOR,
            CellMiss.UNMAPPED_COLOR,
            CellMiss.NO_COLUMN_DATE,
        ]
    
    def test_parse_row_time(self):
        """Test parsing the twelve hour clock in the first cell."""
        assert parse_row_time(parse_row('<tr><td> 2:00 PM </td></tr>')).hour == 14
        assert parse_row_time(parse_row('<tr><td>Maintenance</td></tr>')) is None
