"""Adapters active in this deployment."""
from typing import List

from adapters.base import SourceAdapter
from adapters.calendar_page import CalendarPageAdapter
from adapters.jsonld import JsonLdAdapter


def default_adapters() -> List[SourceAdapter]:
    """Construct the adapter instances for a run, in registration order."""
    return [
        JsonLdAdapter(
            'booksmith',
            'The Booksmith',
            'https://booksmith.com/events/list/upcoming-events',
            tags=['book'],
            enrich_details=True
        ),
        JsonLdAdapter(
            'greenapple',
            'Green Apple Books',
            'https://greenapplebooks.com/events',
            tags=['book']
        ),
        JsonLdAdapter(
            'independent',
            'The Independent SF',
            'https://www.theindependentsf.com/calendar/',
            tags=['music'],
            enrich_details=True
        ),
        JsonLdAdapter(
            'grayarea',
            'Gray Area',
            'https://grayarea.org/visit/events/',
            tags=['art']
        ),
        JsonLdAdapter(
            'sfjazz',
            'SFJAZZ',
            'https://www.sfjazz.org/',
            tags=['music']
        ),
        CalendarPageAdapter(
            'makeoutroom',
            'Make-Out Room',
            'http://www.makeoutroom.com/events'
        ),
    ]
