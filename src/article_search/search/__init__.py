"""
Search indexing and query engine package.

This package provides a pure-Python search stack:
- analyzers: Tokenizer, filters, HTML stripping and keyword extraction
- stats: Field length statistics and length-normalized term frequency
- models: Article records and immutable index snapshots
- indexer: Raw article enhancement and inverted index construction
- index_cache: Signature-checked cache of the current index
- fuzzy / synonyms / advanced: Typo-tolerant and synonym query expansion
- query_planner: Candidate selection, filters, scoring, sorting, pagination
- suggestions: Spelling corrections and related terms
- snippet: Excerpts and term highlighting
- insights: Corpus-wide statistics
"""
