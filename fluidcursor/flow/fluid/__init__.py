from .FluidFlow import FluidFlow, FluidFlowConfig, FluidState
