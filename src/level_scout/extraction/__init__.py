# ABOUTME: Candidate extraction from YouTube video metadata
# ABOUTME: Regex level ID candidates, name variations, video metadata and model analysis

"""
Extraction Layer: Turn video metadata into level candidates

This layer handles:
- YouTube link parsing and video metadata retrieval
- Regex candidates for level IDs
- Model-assisted level ID and name extraction
- Alternate search strings for level names

Data Flow: YouTube → Video metadata → Candidates → services/ validation
"""

# The extraction layer provides adapter protocols and extractors
# Models are defined in level_scout.core.models
