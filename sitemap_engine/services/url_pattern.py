"""
URL patterns - route templates with :params filled from model records
"""

import re
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from sitemap_engine.core.exceptions import MalformedParamDefinition
from sitemap_engine.schemas.page import PageDefinition
from sitemap_engine.schemas.site import SiteDefinition

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT = "default"

# Leftovers after substitution: optional params are dropped, required ones defaulted
_OPTIONAL_PARAM = re.compile(r'/:[^/?]+\?')
_REQUIRED_PARAM = re.compile(r'/:[^/?]+')


def _read(obj: Any, name: str) -> Any:
    """Read an attribute from a model object or a key from a mapping"""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _first_related(model: Any, relation: str) -> Any:
    """
    First record of a relation

    Handles relationship collections, single related objects, query objects
    and relation methods returning either of those.
    """
    related = _read(model, relation)
    if callable(related) and not hasattr(related, 'first'):
        related = related()
    if related is None:
        return None
    if hasattr(related, 'first'):
        return related.first()
    if isinstance(related, (list, tuple)):
        return related[0] if related else None
    return related


class UrlPatternEngine:
    """
    Builds URL patterns for pages and fills their parameters

    A pattern is an absolute URL still containing route parameters, for
    example ``https://example.com/blog/:category/:slug?``.
    """

    def __init__(self, app_url: str):
        self.app_url = app_url.rstrip('/')

    def build_pattern(self, page: PageDefinition, site: SiteDefinition) -> str:
        """
        Make the URL pattern of a page for a site

        Args:
            page: Page definition with its route template
            site: Site whose locale URL and route prefix apply

        Returns:
            Absolute URL pattern, e.g. ``https://example.com/en/blog/:slug``
        """
        url = page.url

        # Root pages keep their trailing slash
        restore_slash = url == '/'

        if site.locale and page.locale_urls.get(site.locale):
            url = page.locale_urls[site.locale]

        path = site.attach_route_prefix(url.lstrip('/'))
        pattern = self.app_url + '/' + path.lstrip('/')

        if restore_slash and not pattern.endswith('/'):
            pattern += '/'

        return pattern

    def make_params(self, param_definitions: Optional[str], model: Any) -> Dict[str, str]:
        """
        Generate URL parameter values from a definition and a model record

        Args:
            param_definitions: ``urlParam:modelField`` tokens joined with ``|``.
                ``modelField`` may be ``relation.attribute``.
            model: Record the values are read from

        Returns:
            Mapping of URL parameter name to value, in definition order

        Raises:
            MalformedParamDefinition: If a token has no ``:`` or a relation
                path is not exactly ``relation.attribute``
        """
        params: Dict[str, str] = {}
        if not param_definitions:
            return params

        for token in param_definitions.split('|'):
            url_param, separator, model_field = token.strip().partition(':')
            if not separator or not url_param or not model_field:
                raise MalformedParamDefinition(f"Invalid URL parameter definition: '{token}'")

            if '.' not in model_field:
                value = _read(model, model_field)
            else:
                parts = model_field.split('.')
                if len(parts) != 2 or not all(parts):
                    raise MalformedParamDefinition(
                        f"Relation parameter must be relation.attribute: '{model_field}'"
                    )
                relation, attribute = parts
                related = _first_related(model, relation)
                value = _read(related, attribute) if related is not None else None
                if value is None or value == '':
                    value = DEFAULT_SEGMENT

            params[url_param] = '' if value is None else str(value)

        return params

    def fill_pattern(self, pattern: str, params: Optional[Dict[str, str]] = None) -> str:
        """
        Fill parameters of a pattern

        Parameters are substituted in the order of ``params``. An empty value
        removes an optional parameter; a required one is left to become
        ``default``. Unresolved optional parameters are removed and unresolved
        required parameters replaced with ``default``.
        """
        url = pattern

        for param, value in (params or {}).items():
            name = re.escape(param)

            # Parameters inside the path, like /:slug/
            url = re.sub(
                rf'/:{name}(\?)?/',
                lambda m: self._replacement(m, value, '/'),
                url,
                flags=re.IGNORECASE,
            )

            # Parameters at the end of the string, like /:slug
            url = re.sub(
                rf'/:{name}(\?)?$',
                lambda m: self._replacement(m, value, ''),
                url,
                flags=re.IGNORECASE,
            )

        url = _OPTIONAL_PARAM.sub('', url)
        url = _REQUIRED_PARAM.sub('/' + DEFAULT_SEGMENT, url)

        return url

    def resolve(self, pattern: str, param_definitions: Optional[str], model: Any) -> str:
        """Fill a pattern with parameters generated from a model record"""
        return self.fill_pattern(pattern, self.make_params(param_definitions, model))

    @staticmethod
    def _replacement(match: re.Match, value: str, tail: str) -> str:
        if value:
            return f"/{value}{tail}"
        if match.group(1):
            return tail
        return match.group(0)
