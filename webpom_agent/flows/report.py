from typing import List

from jinja2 import Environment

from webpom_agent.data.models import UserFlow

REPORT_TEMPLATE = """# Interaction Analysis Report

## Total Patterns Found: {{ flows | length }}
{% for flow in flows %}

### {{ flow.name }}
{{ flow.description }}

**Steps:** {{ flow.steps | length }}
**API Calls:** {{ flow.expected_api_calls | length }}
**Visual Checkpoints:** {{ flow.visual_checkpoints | length }}
{% endfor %}
"""

_env = Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)


def render_interaction_report(flows: List[UserFlow]) -> str:
    """Markdown summary of inferred flows."""
    return _env.from_string(REPORT_TEMPLATE).render(flows=flows)
