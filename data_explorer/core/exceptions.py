class ExplorerError(Exception):
    """Base exception for all data_explorer errors"""
    pass

class ConfigError(ExplorerError):
    """Invalid or inconsistent global.json or app config"""
    pass

class DatasetSchemaError(ExplorerError):
    """
    Data bundle doesn't match what DataBundle/DatasetView expects
    non-DataFrame values, empty names, etc
    """
    pass

class ModuleTreeError(ExplorerError):
    """Module tree is malformed: too deep, empty groups, unknown node types"""
    pass

class RegistryBuildError(ExplorerError):
    """Dataset registry could not be built for the module tree"""
    pass

class SessionError(ExplorerError):
    """Fatal error for a single session (e.g. registry build failed)"""
    pass

class CredentialsError(ExplorerError):
    """Password / credentials rejected by a data resolver"""
    pass
