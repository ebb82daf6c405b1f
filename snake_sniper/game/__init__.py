from snake_sniper.game.state import Color, GameState, decode_state
from snake_sniper.game.roll import Prediction, extract_roll

__all__ = ["Color", "GameState", "decode_state", "Prediction", "extract_roll"]
