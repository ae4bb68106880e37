"""
Tests for list-function flag parsing.
"""

import pytest

from dproj.core.docker.options import (
    CONTAINER_LIST,
    IMAGE_LIST,
    NETWORK_LIST,
    VOLUME_LIST,
    ListOptions,
    parse_filters,
    parse_list_options,
    split_args,
)
from dproj.core.errors import ScriptError


class TestSplitArgs:
    """Shell-word splitting."""

    def test_empty(self):
        """No flag string gives no arguments."""
        assert split_args("") == []
        assert split_args(None) == []

    def test_quotes(self):
        """Quoted words stay together."""
        assert split_args('run -e "A=b c" alpine') == ["run", "-e", "A=b c", "alpine"]

    def test_unbalanced_quotes(self):
        """Unbalanced quotes are a script error."""
        with pytest.raises(ScriptError, match="invalid arguments"):
            split_args('echo "oops')


class TestParseFilters:
    """name=value filter expressions."""

    def test_groups_by_name(self):
        """Filters with the same name are grouped."""
        assert parse_filters(["label=a", "status=running", "label=b"]) == {
            "label": ["a", "b"],
            "status": ["running"],
        }

    def test_name_lowercased(self):
        """Filter names are lowercased."""
        assert parse_filters(["Label=x"]) == {"label": ["x"]}

    def test_value_may_contain_equals(self):
        """Only the first = separates name and value."""
        assert parse_filters(["label=k=v"]) == {"label": ["k=v"]}

    @pytest.mark.parametrize("value", ["label", "=x"])
    def test_bad_format(self, value):
        """A filter without = is rejected."""
        with pytest.raises(ScriptError, match="bad format of filter"):
            parse_filters([value])


class TestParseListOptions:
    """Flag strings of each list function."""

    def test_defaults(self):
        """No flags give the default options."""
        assert parse_list_options(CONTAINER_LIST, None) == ListOptions()

    def test_container_flags(self):
        """Container list flags are parsed."""
        options = parse_list_options(CONTAINER_LIST, "-a -s --no-trunc -f label=web -f status=exited")
        assert options.all
        assert options.size
        assert options.no_trunc
        assert options.filters == {"label": ["web"], "status": ["exited"]}

    def test_latest_sets_limit(self):
        """--latest means a limit of one."""
        assert parse_list_options(CONTAINER_LIST, "-l").limit == 1

    def test_last_sets_limit(self):
        """--last sets the limit."""
        assert parse_list_options(CONTAINER_LIST, "-n 3").limit == 3

    def test_no_limit(self):
        """Without -n or -l there is no limit."""
        assert parse_list_options(CONTAINER_LIST, "-a").limit is None

    def test_combined_short_flags(self):
        """Short flags can be combined."""
        options = parse_list_options(CONTAINER_LIST, "-aq")
        assert options.all
        assert options.quiet

    def test_quiet_and_format_accepted(self):
        """Display flags are accepted."""
        options = parse_list_options(VOLUME_LIST, "-q --format '{{.Name}}'")
        assert options.quiet
        assert options.format == "{{.Name}}"

    def test_image_reference_becomes_filter(self):
        """An image reference becomes a reference filter."""
        options = parse_list_options(IMAGE_LIST, "--digests nginx")
        assert options.digests
        assert options.reference == "nginx"
        assert options.filters == {"reference": ["nginx"]}

    def test_unknown_flag(self):
        """Unknown flags are a script error."""
        with pytest.raises(ScriptError, match="network.list"):
            parse_list_options(NETWORK_LIST, "--all")

    def test_flag_missing_value(self):
        """A flag missing its value is a script error."""
        with pytest.raises(ScriptError):
            parse_list_options(CONTAINER_LIST, "-f")

    def test_bad_integer(self):
        """A non-integer count is a script error."""
        with pytest.raises(ScriptError):
            parse_list_options(CONTAINER_LIST, "-n many")

    def test_unexpected_argument(self):
        """Positional arguments are refused where docker refuses them."""
        with pytest.raises(ScriptError):
            parse_list_options(VOLUME_LIST, "extra")
