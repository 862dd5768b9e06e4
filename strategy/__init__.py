"""
Strategy package for ARBSCOPE.

- config: typed scanner configuration
- cost_model / verdict: pricing of a candidate spread
- analyzers: RuleBasedAnalyzer, RemoteAnalyzer
- detector: OpportunityDetector
- orchestrator: ScanOrchestrator (single-flight scan cycle)
- jobs/: CLI entrypoints
"""
