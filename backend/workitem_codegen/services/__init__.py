from workitem_codegen.services.work_item_pipeline import PipelineResult, PipelineStage, WorkItemPipeline

__all__ = ["PipelineResult", "PipelineStage", "WorkItemPipeline"]
