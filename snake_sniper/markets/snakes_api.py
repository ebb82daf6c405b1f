"""
Snakes game service client.

The game is exposed as a Solana "action" endpoint:
- GET  returns the board (positions packed in `icon`, turn in `description`)
- POST with our account returns the next roll in `message` plus a ready
  built transaction that claims it

One HTTP attempt per call. Retrying is the orchestrator's job.
"""

from typing import Optional

import requests

from snake_sniper.errors import FetchError


class SnakesAPIClient:
    """Thin client for the snakes action endpoint."""

    def __init__(self, config, session: Optional[requests.Session] = None):
        self.config = config
        self.game_url = config.game.game_url
        self.timeout = config.game.http_timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def fetch_state(self) -> dict:
        """Fetch the current board payload."""
        try:
            response = self.session.get(self.game_url, timeout=self.timeout)
            response.raise_for_status()
            return self._json_body(response, step="fetching_state")
        except requests.RequestException as e:
            raise FetchError(f"[SnakesAPI] Error fetching game state: {e}",
                             step="fetching_state", payload=self.game_url) from e

    def fetch_prediction(self, account: str) -> dict:
        """Ask the service what we'd roll and for the transaction that plays it."""
        body = {"account": account}
        try:
            response = self.session.post(self.game_url, json=body, timeout=self.timeout)
            response.raise_for_status()
            return self._json_body(response, step="fetching_prediction")
        except requests.RequestException as e:
            raise FetchError(f"[SnakesAPI] Error fetching prediction: {e}",
                             step="fetching_prediction", payload=body) from e

    @staticmethod
    def _json_body(response, step: str) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"[SnakesAPI] Response is not JSON: {e}",
                             step=step, payload=response.text[:200]) from e
        if not isinstance(data, dict):
            raise FetchError(f"[SnakesAPI] Expected a JSON object, got {type(data).__name__}",
                             step=step, payload=data)
        return data
