# ssbl/utils/game_config_loader.py
import os
import yaml
from dotenv import load_dotenv

# 載入 .env 檔案中的環境變數
load_dotenv()

class GameConfigLoader:
    """
    負責讀取 config/game_config.yaml 的單例類別 (聯賽規則設定)。
    優先順序:
    1. 環境變數 'GAME_CONFIG_PATH'
    2. 專案根目錄下的 config/game_config.yaml (自動推導)
    3. 當前工作目錄 (CWD) 下的 config/game_config.yaml
    """
    _config = None

    @classmethod
    def _resolve_path(cls):
        env_path = os.getenv('GAME_CONFIG_PATH')
        if env_path:
            potential_path = env_path if os.path.isabs(env_path) else os.path.abspath(env_path)
            if os.path.exists(potential_path):
                return potential_path
            print(f"⚠️ [Config] .env 設定的 GAME_CONFIG_PATH ({env_path}) 找不到檔案，將嘗試自動搜尋。")

        # ssbl/utils -> ssbl -> root
        current_dir = os.path.dirname(os.path.abspath(__file__))
        project_root = os.path.dirname(os.path.dirname(current_dir))
        default_path = os.path.join(project_root, 'config', 'game_config.yaml')
        if os.path.exists(default_path):
            return default_path

        cwd_path = os.path.join(os.getcwd(), 'config', 'game_config.yaml')
        if os.path.exists(cwd_path):
            return cwd_path

        return None

    @classmethod
    def load(cls):
        """
        載入設定檔 (Singleton 模式)
        """
        if cls._config is None:
            config_path = cls._resolve_path()
            if not config_path:
                raise FileNotFoundError(
                    "Game config file not found. \n"
                    "Please set 'GAME_CONFIG_PATH' in .env or ensure 'config/game_config.yaml' exists in project root."
                )

            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    cls._config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Error parsing YAML config at {config_path}: {e}")

        return cls._config

    @classmethod
    def get(cls, key_path=None, default=None):
        """
        取得設定值，支援點號路徑存取。
        Example: GameConfigLoader.get('league_system.roster.team_size', 13)
        """
        try:
            cfg = cls.load()
        except (FileNotFoundError, ValueError) as e:
            print(f"❌ [Config] Failed to load config: {e}")
            return default

        if not key_path:
            return cfg

        val = cfg
        for k in key_path.split('.'):
            if isinstance(val, dict):
                val = val.get(k)
                if val is None:
                    return default
            else:
                return default

        return val

    @classmethod
    def reload(cls):
        """強制重新讀取 (用於熱更或測試)"""
        cls._config = None
        return cls.load()

    # --- 常用聯賽規則 ---

    @classmethod
    def team_size(cls):
        return int(cls.get('league_system.roster.team_size', 13))

    @classmethod
    def lineup_size(cls):
        return int(cls.get('league_system.roster.lineup_size', 9))
