from workitem_codegen.prompting.assembler import assemble, build_instructions
from workitem_codegen.prompting.renderer import PromptOptions, PromptRenderer

__all__ = ["PromptOptions", "PromptRenderer", "assemble", "build_instructions"]
