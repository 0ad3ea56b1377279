"""Shared fixtures: generated database type sources."""

from __future__ import annotations

from pathlib import Path

import pytest

EXAMPLE_TYPES = """export type Json =
  | string
  | number
  | boolean
  | null
  | { [key: string]: Json }
  | Json[];

export type Database = {
  public: {
    Tables: {
      users: {
        Row: {
          username: string;
          data: Json | null;
          status: Database['public']['Enums']['user_status'] | null;
        };
        Insert: {
          username: string;
          data?: Json | null;
          status?: Database['public']['Enums']['user_status'] | null;
        };
        Update: {
          username?: string;
          data?: Json | null;
          status?: Database['public']['Enums']['user_status'] | null;
        };
      };
    };
    Views: {
      non_updatable_view: {
        Row: {
          username: string | null;
        };
      };
    };
    Functions: {
      get_status: {
        Args: { name_param: string };
        Returns: Database['public']['Enums']['user_status'];
      };
    };
    Enums: {
      user_status: 'ONLINE' | 'OFFLINE';
    };
  };
  schema_b: {
    Tables: {
      users: {
        Row: {
          username: string;
          data: Json | null;
          status: Database['public']['Enums']['user_status'] | null;
        };
        Insert: {
          username: string;
          status?: Database['schema_b']['Enums']['user_status'] | null;
        };
        Update: {
          data?: Json | null;
          status?: Database['schema_b']['Enums']['user_status'] | null;
        };
      };
    };
    Views: {
      non_updatable_view: {
        Row: {
          username: string | null;
        };
      };
    };
    Functions: {
      get_deployment_config_schema: {
        Args: Record<PropertyKey, never>;
        Returns: Json;
      };
      get_status: {
        Args: { name_param: string };
        Returns: Database['schema_b']['Enums']['user_status'];
      };
    };
    Enums: {
      user_status: 'ONLINE' | 'OFFLINE';
    };
  };
};
"""

MERGED_TYPES = """type DatabaseGenerated = {
  public: {
    Tables: {
      posts: {
        Row: { id: number; tags: string[] };
      };
    };
    Enums: {};
  };
  auth: {
    Tables: {
      sessions: {
        Row: { id: string };
      };
    };
  };
};

export type Database = MergeDeep<
  DatabaseGenerated,
  {
    public: {
      Views: {
        extra_view: { Row: { id: number } };
      };
    };
  }
>;
"""


@pytest.fixture
def example_source() -> str:
    return EXAMPLE_TYPES


@pytest.fixture
def merged_source() -> str:
    return MERGED_TYPES


@pytest.fixture
def example_file(tmp_path: Path) -> Path:
    path = tmp_path / "types.ts"
    path.write_text(EXAMPLE_TYPES, encoding="utf-8")
    return path
