"""Shared fixtures for core unit tests"""

import re

import pytest

from mdblocks.core.blocks.registry import default_registry


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** and *emphasis* and a [link](https://example.com "Example").

## Heading 2

- item one
- item two

1. first
2. second

> quoted text

| Name | Value |
| --- | --- |
| a | 1 |
| b | 2 |

```python
print("hello")
```

```card
{"title": "Revenue",  "content": "Q3 <up> & \\"rising\\"", "ratio": 1.50}
```

---

Footer paragraph with `inline code`.
"""

SAMPLE_FM_MD = """\
---
title: Test Doc
tags: [a, b]
---

# Title

Body content.
"""

THREE_BLOCKS_MD = """\
Intro prose.

```card
{"title": "First"}
```

Middle prose.

```progress
{
  "value": 10
}
```

```python
not a block
```

```alert
{"title": "Heads up", "message": "Third"}
```

Outro prose.
"""


def normalize_html(html: str) -> str:
    """Collapse whitespace between tags for structural comparison."""
    return re.sub(r">\s+<", "><", html).strip()


@pytest.fixture(name="registry")
def registry_fixture():
    return default_registry()


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="sample_fm_md")
def sample_fm_md_fixture():
    return SAMPLE_FM_MD


@pytest.fixture(name="three_blocks_md")
def three_blocks_md_fixture():
    return THREE_BLOCKS_MD


@pytest.fixture(name="normalize")
def normalize_fixture():
    return normalize_html
