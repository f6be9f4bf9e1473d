"""Unit tests for URL identity normalization."""

from nerdfeed.store.url import url_host, url_identity, url_path_parts


class TestUrlIdentity:
    """Tests for url_identity."""

    def test_case_www_and_trailing_slash_ignored(self) -> None:
        """Host case, www prefix and a trailing slash do not change identity."""
        assert url_identity("https://Example.com/Repo/") == url_identity(
            "https://www.example.com/repo"
        )

    def test_git_suffix_stripped(self) -> None:
        """A trailing .git suffix is removed."""
        assert url_identity("https://github.com/org/tool.git") == "github.com/org/tool"

    def test_scheme_query_and_fragment_ignored(self) -> None:
        """Scheme, query string and fragment are not part of the identity."""
        a = url_identity("http://github.com/org/tool?tab=readme#install")
        b = url_identity("https://github.com/org/tool")
        assert a == b

    def test_missing_scheme(self) -> None:
        """URLs without a scheme still normalize to host plus path."""
        assert url_identity("www.example.com/Path/") == "example.com/path"

    def test_empty_url(self) -> None:
        """Empty and blank URLs have an empty identity."""
        assert url_identity("") == ""
        assert url_identity("   ") == ""

    def test_different_paths_differ(self) -> None:
        """Different repositories on the same host are distinct."""
        assert url_identity("https://github.com/org/a") != url_identity(
            "https://github.com/org/b"
        )


class TestUrlHelpers:
    """Tests for url_host and url_path_parts."""

    def test_host_is_lowercased(self) -> None:
        """Hosts are returned in lowercase."""
        assert url_host("https://GitHub.com/org/repo") == "github.com"

    def test_host_of_empty_url(self) -> None:
        """An empty URL has no host."""
        assert url_host("") == ""

    def test_path_parts_skip_empty_segments(self) -> None:
        """Path segments exclude empty parts from leading and trailing slashes."""
        assert url_path_parts("https://huggingface.co/org/model/") == ["org", "model"]
