"""Template-based pattern matching for the intent classifier.

Converts patterns like "[learn|teach] $alias [as|is|means|to] $target"
into compiled regex, matches against input text, and returns extracted fields.

Syntax:
    [alt1|alt2|alt3]  — matches any of the alternatives ([a|] makes it optional)
    $name             — captures text into a named field (non-greedy)
    #name             — captures a number like 2, 45 or 2.5 into a named field
    literal text      — matches literally (case-insensitive, flexible whitespace)

A pattern is anchored at both ends by default. With suffix=True it may start
at any word boundary but must still run to the end of the text, so
"please remove milk" matches "[remove|delete] $item".

Examples:
    >>> p = TemplatePattern("[stock|quantity] [of |]$item")
    >>> p.match("stock of sugar")
    {'item': 'sugar'}
    >>> TemplatePattern("[remove|delete] $item", suffix=True).match("please remove milk")
    {'item': 'milk'}
"""

import re

_NUMBER_RE = r"\d+(?:\.\d+)?"


class TemplatePattern:
    """A compiled template pattern that can match text and extract named fields."""

    def __init__(self, template, greedy=False, suffix=False):
        self.template = template
        self.suffix = suffix
        self._regex, self._group_map = _compile(template, greedy, suffix)

    def match(self, text):
        """Match text against this pattern. Returns dict of fields or None."""
        clean = text.strip().rstrip("?!.,")
        m = self._regex.search(clean) if self.suffix else self._regex.match(clean)
        if m is None:
            return None
        result = {}
        for group_num, field_name in self._group_map.items():
            value = m.group(group_num)
            if value is not None:
                result[field_name] = value.strip()
        return result

    def __call__(self, text):
        return self.match(text)

    def __repr__(self):
        return f"TemplatePattern({self.template!r})"


# --- Compilation internals ---

class _Compiler:
    """Stateful compiler that tracks capturing group numbers."""

    def __init__(self, greedy=False):
        self.greedy = greedy
        self.group_count = 0
        self.group_map = {}  # group_number -> field_name

    def compile_template(self, template, suffix=False):
        """Compile a full template string. Returns (regex_str, group_map)."""
        regex_str = self._compile_fragment(template)
        prefix = r"\b" if suffix else "^"
        return prefix + regex_str + "$", self.group_map

    def _capture(self, name, body):
        self.group_count += 1
        self.group_map[self.group_count] = name
        return f"({body})"

    def _compile_fragment(self, fragment):
        """Compile a fragment to a regex string."""
        parts = []
        i = 0
        s = fragment
        while i < len(s):
            if s[i] == '[':
                depth = 1
                j = i + 1
                while j < len(s) and depth > 0:
                    if s[j] == '[':
                        depth += 1
                    elif s[j] == ']':
                        depth -= 1
                    j += 1
                inner = s[i+1:j-1]
                alts = _split_alternatives(inner)
                alt_patterns = [self._compile_fragment(alt) for alt in alts]
                parts.append('(?:' + '|'.join(alt_patterns) + ')')
                i = j
            elif s[i] in '$#':
                m = re.match(r'[$#]([a-zA-Z_]\w*)', s[i:])
                if m:
                    if s[i] == '#':
                        parts.append(self._capture(m.group(1), _NUMBER_RE))
                    else:
                        parts.append(self._capture(m.group(1), '.+' if self.greedy else '.+?'))
                    i += m.end()
                else:
                    parts.append(re.escape(s[i]))
                    i += 1
            else:
                if s[i] in ' \t':
                    while i < len(s) and s[i] in ' \t':
                        i += 1
                    parts.append(r'\s+')
                else:
                    parts.append(re.escape(s[i]))
                    i += 1
        return ''.join(parts)


def _split_alternatives(text):
    """Split on top-level | characters, respecting nested brackets."""
    alts = []
    depth = 0
    current = []
    for ch in text:
        if ch == '[':
            depth += 1
            current.append(ch)
        elif ch == ']':
            depth -= 1
            current.append(ch)
        elif ch == '|' and depth == 0:
            alts.append(''.join(current))
            current = []
        else:
            current.append(ch)
    alts.append(''.join(current))
    return alts


def _compile(template, greedy=False, suffix=False):
    """Compile a template string to a (compiled_regex, group_map) tuple."""
    compiler = _Compiler(greedy)
    pattern_str, group_map = compiler.compile_template(template, suffix)
    return re.compile(pattern_str, re.IGNORECASE), group_map
