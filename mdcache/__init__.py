from mdcache.cache import CacheEntry, EbuildMetadata, parse_cache, parse_cache_file, parse_cache_files
from mdcache.parser import parse_license, parse_required_use, parse_restrict, parse_src_uri, parse_dependencies
