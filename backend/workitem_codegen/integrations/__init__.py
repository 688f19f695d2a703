from workitem_codegen.integrations.azure_devops import AzureDevOpsClient, WorkTracker
from workitem_codegen.integrations.generation import CodeGenerator, GenerationService, GenerationServiceCache
from workitem_codegen.integrations.version_control import FileChange, VersionControl

__all__ = [
    "AzureDevOpsClient",
    "CodeGenerator",
    "FileChange",
    "GenerationService",
    "GenerationServiceCache",
    "VersionControl",
    "WorkTracker",
]
