from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Tax Rate Store"

    # Backing file. A relative path resolves against the process working
    # directory, not the package; set an absolute TAX_FILE_PATH elsewhere.
    TAX_FILE_PATH: str = "data/Taxes.txt"
    TAX_FILE_BACKUP_SUFFIX: str = ".bak"
    TAX_FILE_HEADER: str = "RegionKey,RegionName,TaxRate"
    TAX_FILE_ENCODING: str = "utf-8"

    model_config = SettingsConfigDict(case_sensitive=True)

settings = Settings()
