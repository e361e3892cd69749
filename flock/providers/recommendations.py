# flock/providers/recommendations.py

import json
from typing import List, Optional

from pydantic import Field, ValidationError

from .base import BaseProvider, ProviderModel
from ..exceptions import ProviderError
from ..utils.http import JsonDownloader

SYSTEM_PROMPT = 'recommend popular books like New York Times best sellers'

RESPONSE_FORMAT = {
    'type': 'json_schema',
    'json_schema': {
        'name': 'books',
        'strict': True,
        'schema': {
            'type': 'object',
            'properties': {
                'books': {
                    'type': 'array',
                    'items': {
                        'type': 'object',
                        'properties': {
                            'author': {'type': 'string'},
                            'title': {'type': 'string'},
                        },
                        'required': ['author', 'title'],
                        'additionalProperties': False,
                    },
                },
            },
            'required': ['books'],
            'additionalProperties': False,
        },
    },
}


class Suggestion(ProviderModel):
    title: str
    author: str


class Suggestions(ProviderModel):
    books: List[Suggestion] = Field(default_factory=list)


class ChatMessage(ProviderModel):
    content: Optional[str] = None


class ChatChoice(ProviderModel):
    message: Optional[ChatMessage] = None


class ChatCompletion(ProviderModel):
    choices: List[ChatChoice] = Field(default_factory=list)


class RecommendationProvider(BaseProvider):
    """Asks the chat completions API for books similar to a seed book"""

    name = 'recommendations'

    def __init__(self, api_url: str, api_key: Optional[str], model: str = 'gpt-4o-mini',
                 organization: Optional[str] = None, project: Optional[str] = None,
                 downloader: Optional[JsonDownloader] = None, count: int = 5):
        super().__init__(downloader)
        self.api_url = api_url.rstrip('/')
        self.api_key = api_key
        self.model = model
        self.organization = organization
        self.project = project
        self.count = count

    @property
    def headers(self) -> dict:
        if not self.api_key:
            raise ProviderError(self.name, 'OPEN_AI_API_KEY is not set')
        headers = {'Authorization': f"Bearer {self.api_key}"}
        if self.organization:
            headers['OpenAI-Organization'] = self.organization
        if self.project:
            headers['OpenAI-Project'] = self.project
        return headers

    def suggest(self, title: str, author: Optional[str]) -> List[Suggestion]:
        """Similar books to one seed. Empty list on any failure."""
        prompt = f'recommend me {self.count} similar books to "{title}"'
        if author:
            prompt += f' by "{author}"'

        payload = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user', 'content': prompt},
            ],
            'response_format': RESPONSE_FORMAT,
        }

        response = self.downloader.post_json(f"{self.api_url}/chat/completions", payload, self.headers)
        if not response.success:
            self.logger.warning(f"No suggestions for {title!r}: status {response.status_code}")
            return []

        completion = self.parse(ChatCompletion, response.data)
        if completion is None or not completion.choices or not completion.choices[0].message:
            return []

        content = completion.choices[0].message.content or ''
        try:
            suggestions = Suggestions.model_validate(json.loads(content))
        except (ValueError, ValidationError) as e:
            self.logger.warning(f"Unparseable suggestions for {title!r}: {e}")
            return []

        self.logger.info(f"Got {len(suggestions.books)} suggestions for {title!r}")
        return suggestions.books
